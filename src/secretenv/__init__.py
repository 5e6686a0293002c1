"""secretenv - resolve secret references into a child process environment.

Variables named with a recognized prefix (``SECRETENV_SECRET_`` by default)
are resolved through a secret manager, expanded against each other, and
injected, unprefixed, into the environment of a command:

```bash
export SECRETENV_SECRET_API_KEY='{{op://vault/api/credential}}'
export SECRETENV_SECRET_API_URL='https://api.example.com/v1?key=$API_KEY'
secretenv run -- my-tool
```
"""

from secretenv.core import PipelineResult, SecretPipeline
from secretenv.version import PACKAGE_VERSION as __version__

__all__ = ["PipelineResult", "SecretPipeline", "__version__"]

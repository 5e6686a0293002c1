"""Base Pydantic model for secretenv.

Example:
    >>> from secretenv.models import SecretEnvBaseModel
    >>> from pydantic import Field
    >>>
    >>> class MyModel(SecretEnvBaseModel):
    ...     name: str
    ...     count: int = Field(default=0, ge=0)
    >>>
    >>> MyModel(name="test").model_dump()
    {'name': 'test', 'count': 0}
"""

from pydantic import BaseModel, ConfigDict


class SecretEnvBaseModel(BaseModel):
    """Base model for all secretenv Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model, so a typo
      in the configuration file is reported instead of ignored
    - frozen=True: Makes instances immutable
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

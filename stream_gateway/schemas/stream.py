from pydantic import BaseModel, ConfigDict, Field
from typing import Union


class AuthenticatedUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    credential: str = Field(min_length=1, repr=False)

    @property
    def key(self) -> str:
        return f"user:{self.user_id}"


class AnonymousVisitor(BaseModel):
    model_config = ConfigDict(frozen=True)

    visitor_id: str = Field(min_length=1)

    @property
    def key(self) -> str:
        return f"visitor:{self.visitor_id}"


CallerIdentity = Union[AuthenticatedUser, AnonymousVisitor]


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
    query: str
    identity: CallerIdentity

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserCredentials(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class UserCreate(UserCredentials):
    pass


class UserLogin(UserCredentials):
    pass


class UserOut(BaseModel):
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class SessionToken(BaseModel):
    token: str

from pydantic import BaseModel, EmailStr, field_validator


class OperatorCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: str = ""

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters.")
        return v


class OperatorLogin(BaseModel):
    email: EmailStr
    password: str


class OperatorResponse(BaseModel):
    id: int
    email: str
    full_name: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

from pydantic import BaseModel, Field


# ✅ 가입/로그인 요청 형식
class Credentials(BaseModel):
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6)

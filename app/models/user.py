from pydantic import BaseModel

class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: str

class LoginResponse(BaseModel):
    token: str
    user: UserOut

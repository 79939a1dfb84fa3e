from pydantic import BaseModel, ConfigDict, Field


class ForgotPasswordIn(BaseModel):
    # format is checked by the reset flow so it can answer INVALID_EMAIL
    email: str


class ResendCodeIn(ForgotPasswordIn):
    pass


class VerifyOtpIn(BaseModel):
    email: str
    otp: str


class ResetPasswordIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    otp: str
    new_password: str = Field(alias="newPassword")


class ResetCodeSentOut(BaseModel):
    ok: bool = True
    message: str = "If the email exists, a verification code has been sent."
    expires_in: int


class OkOut(BaseModel):
    ok: bool = True
    message: str


class ErrorOut(BaseModel):
    ok: bool = False
    error: str

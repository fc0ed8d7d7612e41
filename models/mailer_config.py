from pydantic import BaseModel, ConfigDict


class SMTPCredentials(BaseModel):
    """PLAIN auth credentials, bound to the relay host they are meant for."""
    model_config = ConfigDict(frozen=True)

    username: str
    password: str
    host: str


class MailerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    sender_email: str
    password: str
    smtp_server: str
    smtp_port: str
    smtp_timeout: float = 30.0

    @property
    def relay_address(self) -> str:
        return f"{self.smtp_server}:{self.smtp_port}"

    @property
    def credentials(self) -> SMTPCredentials:
        return SMTPCredentials(
            username=self.sender_email,
            password=self.password,
            host=self.smtp_server,
        )

    def __repr__(self) -> str:
        # Keep the password out of logs and tracebacks
        return (
            f"MailerConfig(sender_email={self.sender_email!r}, password='***', "
            f"smtp_server={self.smtp_server!r}, smtp_port={self.smtp_port!r})"
        )

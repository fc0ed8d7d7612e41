from pydantic import BaseModel
from typing import List


class EmailRequest(BaseModel):
    subject: str = ""
    message: str = ""
    recipients: List[str] = []

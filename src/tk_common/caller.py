"""Caller identity passed into privileged operations.

Authorization is an explicit role check at the top of each privileged
operation (round creation, fee policy), not a property of the service class.
"""

from dataclasses import dataclass

from src.tk_common.enums import UserRole
from src.tk_common.errors import OperatorRequiredError


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str = UserRole.PARTICIPANT.value

    @property
    def is_operator(self) -> bool:
        return self.role == UserRole.OPERATOR.value


def require_operator(caller: Caller) -> None:
    if not caller.is_operator:
        raise OperatorRequiredError()

# SPDX-License-Identifier: MIT

from typing import Literal, TypedDict, Union


class UserRequested(TypedDict):
    kind: Literal["user"]
    actor_id: str
    allowed: bool  # answer of the permission oracle for this actor and status


class SystemDerived(TypedDict):
    kind: Literal["system"]


TransitionRequest = Union[UserRequested, SystemDerived]


def user_requested(actor_id: str, allowed: bool = True) -> UserRequested:
    return {"kind": "user", "actor_id": actor_id, "allowed": allowed}


def system_derived() -> SystemDerived:
    return {"kind": "system"}

# SPDX-License-Identifier: MIT

from enum import StrEnum
from typing import Optional, TypedDict

import pendulum

from cadence.model.entity_id import EntityId


class LinkType(StrEnum):
    FINISH_TO_START = "FINISH_TO_START"
    START_TO_START = "START_TO_START"


class DependencyLink(TypedDict):
    id: Optional[EntityId]
    entity_type: str
    workspace_id: str
    source_task_id: EntityId
    target_task_id: EntityId
    link_type: LinkType
    created: pendulum.DateTime

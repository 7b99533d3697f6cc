# SPDX-License-Identifier: MIT

from cadence.model.entity_id import EntityId
from cadence.model.entity_type import EntityType
from cadence.model.link import DependencyLink, LinkType
from cadence.time import now_utc


def get_link_template(
    workspace_id: str,
    source_task_id: EntityId,
    target_task_id: EntityId,
    link_type: LinkType = LinkType.FINISH_TO_START,
) -> DependencyLink:
    return {
        "id": None,
        "entity_type": EntityType.LINK,
        "workspace_id": workspace_id,
        "source_task_id": source_task_id,
        "target_task_id": target_task_id,
        "link_type": link_type,
        "created": now_utc(),
    }

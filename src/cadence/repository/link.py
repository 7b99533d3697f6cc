# SPDX-License-Identifier: MIT

from copy import deepcopy
from typing import Any, Optional, cast

from yaml import dump, load

try:
    from yaml import CDumper as Dumper
    from yaml import CLoader as Loader  # noqa: F401
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from cadence import configuration, time
from cadence.error import LinkNotFound
from cadence.model.entity_id import EntityId, generate_entity_id
from cadence.model.link import DependencyLink, LinkType


class LinkRepository:
    def __init__(self) -> None:
        self._links: Optional[list[DependencyLink]] = None
        self.is_dirty = False
        self._dirty_ids: set[str] = set()
        self._deleted_ids: set[str] = set()

    @property
    def links(self) -> list[DependencyLink]:
        if self._links is None:
            self.__load_data()
        if self._links is None:
            raise ValueError()
        return self._links

    def __load_data(self) -> None:
        self._links = []
        if not configuration.DATA_LINKS_DIR.is_dir():
            return
        for file_path in configuration.DATA_LINKS_DIR.iterdir():
            if file_path.suffix != ".yaml" or file_path.name == ".gitkeep":
                continue
            raw_link = load(file_path.read_text(), Loader=Loader)
            if raw_link is not None:
                self._links.append(self.__convert_link_for_deserialization(raw_link))

    def __save_data(self) -> None:
        configuration.DATA_LINKS_DIR.mkdir(parents=True, exist_ok=True)

        for link in self.links:
            if link["id"] in self._dirty_ids:
                serializable_link = self.__convert_link_for_serialization(
                    deepcopy(link)
                )
                file_path = configuration.DATA_LINKS_DIR / f"{link['id']}.yaml"
                file_path.write_text(dump(serializable_link, Dumper=Dumper))

        for entity_id in self._deleted_ids:
            file_path = configuration.DATA_LINKS_DIR / f"{entity_id}.yaml"
            if file_path.exists():
                file_path.unlink()

        self._dirty_ids.clear()
        self._deleted_ids.clear()

    def flush(self) -> bool:
        if self._links is not None and self.is_dirty:
            self.__save_data()
            self.is_dirty = False
            return True
        return False

    def __convert_link_for_serialization(self, link: DependencyLink) -> dict[str, Any]:
        serializable_link = cast(dict[str, Any], link)
        serializable_link["link_type"] = str(serializable_link["link_type"])
        serializable_link["created"] = time.datetime_to_iso_str(
            serializable_link["created"]
        )
        return serializable_link

    def __convert_link_for_deserialization(
        self, link: dict[str, Any]
    ) -> DependencyLink:
        deserializable_link = link
        deserializable_link["link_type"] = LinkType(deserializable_link["link_type"])
        deserializable_link["created"] = time.datetime_from_str(
            deserializable_link["created"]
        )
        return cast(DependencyLink, deserializable_link)

    def save_link(self, link: DependencyLink) -> EntityId:
        """Insert a link, or replace the type of an existing (source, target) pair."""
        self.is_dirty = True

        for existing in self.links:
            if (
                existing["source_task_id"] == link["source_task_id"]
                and existing["target_task_id"] == link["target_task_id"]
            ):
                existing["link_type"] = link["link_type"]
                existing_id = cast(EntityId, existing["id"])
                self._dirty_ids.add(existing_id)
                return existing_id

        link["id"] = generate_entity_id()
        self.links.append(deepcopy(link))
        self._dirty_ids.add(link["id"])
        return link["id"]

    def delete_link(self, source_task_id: EntityId, target_task_id: EntityId) -> None:
        for index, link in enumerate(self.links):
            if (
                link["source_task_id"] == source_task_id
                and link["target_task_id"] == target_task_id
            ):
                self.is_dirty = True
                link_id = cast(EntityId, link["id"])
                del self.links[index]
                self._dirty_ids.discard(link_id)
                self._deleted_ids.add(link_id)
                return
        raise LinkNotFound(source_task_id, target_task_id)

    def get_links_for_task(self, task_id: EntityId) -> list[DependencyLink]:
        return [
            deepcopy(link)
            for link in self.links
            if link["source_task_id"] == task_id or link["target_task_id"] == task_id
        ]

    def get_all_links(self, workspace_id: Optional[str] = None) -> list[DependencyLink]:
        return [
            deepcopy(link)
            for link in self.links
            if workspace_id is None or link["workspace_id"] == workspace_id
        ]


LINK_REPO = LinkRepository()

# SPDX-License-Identifier: MIT


class EntityType:
    TASK = "task"
    LINK = "link"
    TIME_ENTRY = "time_entry"

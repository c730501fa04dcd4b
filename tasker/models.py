"""
tasker/models.py -- Domain dataclass for task list items.

Pure data container. Persistence lives in tasker/tasks.py.
"""

from dataclasses import asdict, dataclass


@dataclass
class Task:
    """One item on an entity's task list.

    owner is the id of the entity that created the item; lists are always
    read back by the caller's own id.
    """

    owner: str
    id: str
    description: str
    completed: bool = False

    def to_record(self) -> dict:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict) -> "Task":
        return cls(
            owner=record["owner"],
            id=record["id"],
            description=record["description"],
            completed=bool(record.get("completed", False)),
        )

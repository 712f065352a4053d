from sqlalchemy.orm import declarative_base, declared_attr
from typing import Any
import re

_WORD_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class CustomBase:
    # __tablename__ is the snake_case plural of the class name: TimeEntry -> time_entries
    @declared_attr
    def __tablename__(cls) -> str:
        name = _WORD_BOUNDARY.sub("_", cls.__name__).lower()
        if name.endswith("y"):
            return name[:-1] + "ies"
        return name + "s"


Base: Any = declarative_base(cls=CustomBase)

from dataclasses import dataclass

from entitycache import identity, index


@dataclass
class Guild:
    _id: int = identity(default=0)
    name: str = index(default="")

    def id(self) -> int:
        return self._id

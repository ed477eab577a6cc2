from dataclasses import dataclass

from entitycache import entity_cache, identity, text_index


@entity_cache(cache="items")
@dataclass
class ItemEntity:
    _id: str = identity(default="")
    description: str = text_index(default="")
    price: float = 0.0

    def id(self) -> str:
        return self._id

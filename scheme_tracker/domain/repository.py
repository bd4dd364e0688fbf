"""Storage interface the scheme service depends on"""

from typing import List, Optional, Protocol

from scheme_tracker.domain.models import Scheme


class SchemeRepository(Protocol):
    """
    Persistence for schemes and their payment rows.

    Implementations store the scheme as a unit (payments are owned by the
    scheme) and hand out copies: mutating a returned Scheme has no effect
    until it is passed back to `put`.
    """

    def get(self, scheme_id: str) -> Optional[Scheme]:
        ...

    def list(self, include_archived: bool = False) -> List[Scheme]:
        ...

    def put(self, scheme: Scheme) -> Scheme:
        ...

    def delete(self, scheme_id: str) -> bool:
        ...

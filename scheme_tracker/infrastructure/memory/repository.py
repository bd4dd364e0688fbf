"""In-memory scheme storage for tests and local runs"""

import copy
from typing import Dict, List, Optional

from scheme_tracker.domain.models import Scheme


class InMemorySchemeRepository:
    """Dict-backed repository; every read and write goes through a deep copy"""

    def __init__(self, schemes: Optional[List[Scheme]] = None):
        self._schemes: Dict[str, Scheme] = {}
        for scheme in schemes or []:
            self.put(scheme)

    def get(self, scheme_id: str) -> Optional[Scheme]:
        scheme = self._schemes.get(scheme_id)
        return copy.deepcopy(scheme) if scheme else None

    def list(self, include_archived: bool = False) -> List[Scheme]:
        schemes = [
            copy.deepcopy(s)
            for s in self._schemes.values()
            if include_archived or s.archived_date is None
        ]
        return sorted(schemes, key=lambda s: s.start_date, reverse=True)

    def put(self, scheme: Scheme) -> Scheme:
        self._schemes[scheme.id] = copy.deepcopy(scheme)
        return copy.deepcopy(scheme)

    def delete(self, scheme_id: str) -> bool:
        return self._schemes.pop(scheme_id, None) is not None

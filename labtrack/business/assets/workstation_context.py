"""
Workstation Context
Read-side view of a workstation and its assets, with the derived system status.
"""

from typing import List, Union
from labtrack import db
from labtrack.data.core.asset_info.workstation import Workstation
from labtrack.data.core.asset_info.asset import InventoryAsset
from labtrack.business.core.errors import LabNotFoundError
from labtrack.business.assets.status_aggregation import aggregate_system_status, split_assets


class WorkstationContext:
    """
    Context for a single workstation.

    Provides:
    - The workstation and its assets
    - The system/peripheral split and the aggregate status, recomputed on access
    """

    def __init__(self, workstation: Union[Workstation, int]):
        if isinstance(workstation, int):
            self._workstation = db.session.get(Workstation, workstation)
            if self._workstation is None:
                raise LabNotFoundError(f"Workstation {workstation} not found")
        else:
            self._workstation = workstation

    @classmethod
    def from_name(cls, workstation_name, lab_id=None) -> 'WorkstationContext':
        query = Workstation.query.filter(Workstation.workstation_name == workstation_name)
        if lab_id is not None:
            query = query.filter(Workstation.lab_id == lab_id)
        workstation = query.first()
        if workstation is None:
            raise LabNotFoundError(f"Workstation '{workstation_name}' not found")
        return cls(workstation)

    @property
    def workstation(self) -> Workstation:
        return self._workstation

    @property
    def workstation_id(self) -> int:
        return self._workstation.id

    @property
    def lab_id(self) -> int:
        return self._workstation.lab_id

    @property
    def assets(self) -> List[InventoryAsset]:
        return (InventoryAsset.query
                .filter(InventoryAsset.workstation_id == self._workstation.id)
                .order_by(InventoryAsset.id)
                .all())

    @property
    def system_status(self) -> str:
        return aggregate_system_status(self.assets)

    def to_dict(self, include_assets=True):
        assets = self.assets
        system_units, peripherals = split_assets(assets)
        result = self._workstation.to_dict()
        result['lab_name'] = self._workstation.laboratory.lab_name if self._workstation.laboratory else None
        result['system_status'] = aggregate_system_status(assets)
        result['asset_count'] = len(assets)
        if include_assets:
            result['system_units'] = [a.to_dict(include_audit_fields=False) for a in system_units]
            result['peripherals'] = [a.to_dict(include_audit_fields=False) for a in peripherals]
        return result

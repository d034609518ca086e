import json
import uuid
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return str(uuid.uuid4())


class SheetName(str, Enum):
    EQUIPMENTS = "Equipments"
    WORKSHOPS = "Workshops"
    REPAIR_REQUESTS = "RepairRequests"
    USERS = "Users"


class RequestStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class UserStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"


class Purpose(str, Enum):
    REPAIRING = "Repairing"
    PREPARING = "preparing for work"
    GENERAL_CHECKING = "General Checking"
    OTHER = "Other"


class EquipmentKind(str, Enum):
    SHOVEL = "Shovel"
    LOADER = "Loader"
    EXCAVATOR = "Excavator"
    GENERATOR = "Generator"
    DUMP_TRUCK = "Dump Truck"
    FORKLIFT = "Forklift"
    POCLAIN = "Poclain"


# a preset kind, or whatever the operator typed under "add new"
EquipmentType = Union[EquipmentKind, str]


class CamelModel(BaseModel):
    """camelCase on the wire (sheet columns and JSON API); numeric sheet cells read as text."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# -------------------------
# Equipment
# -------------------------
class EquipmentBase(CamelModel):
    equipment_type: EquipmentType = Field(EquipmentKind.SHOVEL, union_mode="left_to_right")
    equipment_number: str
    make: str = ""
    model_number: str = ""
    serial_number: str
    branch_location: str = ""

    @property
    def is_custom_type(self) -> bool:
        return not isinstance(self.equipment_type, EquipmentKind)

    @property
    def type_label(self) -> str:
        t = self.equipment_type
        return t.value if isinstance(t, EquipmentKind) else t


class EquipmentIn(EquipmentBase):
    @field_validator("equipment_number", "serial_number")
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("equipment number and serial number are mandatory")
        return v

    @field_validator("equipment_type")
    @classmethod
    def _custom_type(cls, v):
        if isinstance(v, EquipmentKind):
            return v
        v = v.strip()
        if not v:
            raise ValueError("specify the new equipment type")
        return v


class Equipment(EquipmentBase):
    id: str


# -------------------------
# Workshops
# -------------------------
class WorkshopIn(CamelModel):
    sub_name: str
    foreman: str
    mechanic: Optional[str] = None

    @field_validator("sub_name", "foreman")
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("workshop name and foreman are mandatory")
        return v


class Workshop(CamelModel):
    id: str
    sub_name: str
    foreman: str = ""
    mechanic: Optional[str] = None


# -------------------------
# Repair requests (job cards)
# -------------------------
class PartUsed(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    quantity: str = "1"

    @property
    def is_blank(self) -> bool:
        return not (self.name.strip() and self.quantity.strip())


class Fault(CamelModel):
    id: str = Field(default_factory=new_id)
    description: str = ""
    workshop_id: str = ""
    mechanic_name: Optional[str] = None
    work_done: Optional[str] = None
    parts_used: List[PartUsed] = []

    # blank sheet cells come back as null
    @field_validator("description", "workshop_id", mode="before")
    @classmethod
    def _blank_if_null(cls, v):
        return "" if v is None else v

    @field_validator("parts_used", mode="before")
    @classmethod
    def _no_parts_if_null(cls, v):
        return [] if v is None else v

    @property
    def is_real(self) -> bool:
        return bool(self.description.strip())


class RepairRequest(CamelModel):
    id: str
    equipment_id: str
    driver_name: str
    mileage: Optional[str] = None
    purpose: Purpose = Purpose.REPAIRING
    faults: List[Fault] = []
    date_in: str
    time_in: str
    date_out: Optional[str] = None
    time_out: Optional[str] = None
    status: RequestStatus = RequestStatus.PENDING
    workshop_id: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status is RequestStatus.PENDING

    def to_payload(self) -> dict:
        # the sheet stores the fault list as one JSON cell
        payload = super().to_payload()
        payload["faults"] = json.dumps(payload["faults"])
        return payload


# -------------------------
# Users
# -------------------------
class User(CamelModel):
    id: str
    password: str
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.PENDING

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


class UserOut(CamelModel):
    id: str
    role: UserRole
    status: UserStatus


class SheetSettings(CamelModel):
    job_card_start_number: Optional[int] = None

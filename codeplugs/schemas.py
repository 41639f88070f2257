from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models.enums import ChannelType, ContactType, Power, Protocol, SquelchType

# ----------------------------------------------------------------------------
# Channels
# ----------------------------------------------------------------------------


class ChannelBase(BaseModel):
    name: str
    rx_frequency: float
    tx_frequency: float
    mode: str = "FM"
    channel_type: ChannelType = ChannelType.ANALOG
    protocol: Protocol = Protocol.FM
    bandwidth: str = "25"
    power: Power = Power.HIGH
    squelch_type: SquelchType = SquelchType.NONE
    rx_tone: str = ""
    tx_tone: str = ""
    rx_dcs: str = ""
    tx_dcs: str = ""
    color_code: int = 0
    time_slot: int = 0
    tx_contact: str = ""
    rx_group: str = ""
    scan_list: str = ""
    skip: bool = False
    notes: str = ""
    squelch_level: int = 3
    tx_permit: str = "Always"
    talkaround: bool = False
    work_alone: bool = False
    forbid_tx: bool = False
    forbid_talkaround: bool = False
    aprs_report_type: str = "Off"
    aprs_receive: bool = False
    auto_scan: bool = False
    lone_work: bool = False
    emergency_indicator: bool = False
    emergency_ack: bool = False
    direct_dual_mode: bool = False
    private_confirm: bool = False
    short_data_confirm: bool = False


class ChannelCreate(ChannelBase):
    pass


class ChannelRead(ChannelBase):
    id: int
    sort_order: int
    contact_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ReorderRequest(BaseModel):
    ids: List[int]


# ----------------------------------------------------------------------------
# Contacts
# ----------------------------------------------------------------------------


class ContactCreate(BaseModel):
    name: str
    dmr_id: int
    call_type: ContactType = ContactType.GROUP


class ContactRead(ContactCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


# ----------------------------------------------------------------------------
# Zones / scan lists / roaming
# ----------------------------------------------------------------------------


class CollectionCreate(BaseModel):
    name: str
    member_ids: List[int] = Field(default_factory=list)


class CollectionRead(BaseModel):
    id: int
    name: str
    members: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class AssignRequest(BaseModel):
    member_ids: List[int]
    append: bool = False


class RoamingChannelCreate(BaseModel):
    name: str
    rx_frequency: float
    tx_frequency: float
    color_code: int = 1
    time_slot: int = 1


class RoamingChannelRead(RoamingChannelCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


# ----------------------------------------------------------------------------
# Filter lists / import / progress
# ----------------------------------------------------------------------------


class ContactListRead(BaseModel):
    id: int
    name: str
    description: str = ""
    created_at: Optional[datetime] = None
    count: int = 0


class ImportSummaryRead(BaseModel):
    member: str
    kind: str
    decoded: int
    imported: int
    skipped: int
    errors: List[str] = Field(default_factory=list)
    failure: Optional[str] = None


class ProgressRead(BaseModel):
    total: int
    processed: int
    status: str
    message: str


class JobAccepted(BaseModel):
    job_id: str

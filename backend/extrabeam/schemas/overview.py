"""
ExtraBeam Backend - Entreprise Overview Schema
==============================================

Single-request dashboard payload. The owner view carries missions and
factures; the public view omits them (routes serialize with
`response_model_exclude_unset`), and its entreprise only holds public columns.
"""

from typing import List, Optional

from pydantic import BaseModel

from extrabeam.schemas.entreprise import EntreprisePrivate
from extrabeam.schemas.facture import FactureOut
from extrabeam.schemas.mission import MissionOut
from extrabeam.schemas.slot import CalendarSlotOut
from extrabeam.schemas.unavailability import UnavailabilityOut


class EntrepriseOverviewResponse(BaseModel):
    mode: str
    entreprise: EntreprisePrivate
    missions: Optional[List[MissionOut]] = None
    factures: Optional[List[FactureOut]] = None
    slots: List[CalendarSlotOut]
    unavailabilities: List[UnavailabilityOut]

# Importing every model registers it on Base.metadata (Alembic, create_all)
from extrabeam.models.account import Client, Profile, UserAccount
from extrabeam.models.contact import ClientContact
from extrabeam.models.cv import CvEducation, CvExperience, CvProfile, CvSkill
from extrabeam.models.entreprise import Entreprise
from extrabeam.models.facture import Facture
from extrabeam.models.mission import Mission, MissionTemplate, Slot
from extrabeam.models.unavailability import Unavailability

__all__ = [
    "Client",
    "ClientContact",
    "CvEducation",
    "CvExperience",
    "CvProfile",
    "CvSkill",
    "Entreprise",
    "Facture",
    "Mission",
    "MissionTemplate",
    "Profile",
    "Slot",
    "Unavailability",
    "UserAccount",
]

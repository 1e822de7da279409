# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# Sans cet import, les FK comme caf_records.evaluator_id → users.id échouent
# avec NoReferencedTableError si user.py n'est pas chargé avant caf.py.

from app.models.user import User  # noqa: F401  (doit précéder caf)
from app.models.student import Student  # noqa: F401
from app.models.caf import CafRecord  # noqa: F401
from app.models.placement_drive import PlacementDrive  # noqa: F401
from app.models.internship import InternshipRecord  # noqa: F401
from app.models.mock_interview import MockInterviewResult  # noqa: F401

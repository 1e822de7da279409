"""
Service d'import des résultats d'entretiens blancs (Excel ou CSV).
Gère le parsing, la validation ligne par ligne, la détection de doublons et
l'upsert par (numéro d'inscription, tentative).

Une ligne invalide est rapportée dans le rapport sans interrompre l'import.
"""

import csv
import io
import logging
import zipfile
from typing import Dict, List, Optional, Tuple

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.mock_interview import MockInterviewResult
from app.models.student import Student
from app.schemas.mock_interview import MockResultImportReport, MockResultImportRow
from app.schemas.student import ImportError

logger = logging.getLogger(__name__)

# Colonnes acceptées (insensibles à la casse, espaces → _)
REQUIRED_COLUMNS = {"enrollment_no", "gd", "hr", "technical"}
OPTIONAL_COLUMNS = {"attempt", "selected", "rejected_at"}
COLUMN_ALIASES = {
    "enrollment": "enrollment_no",
    "enrollment_number": "enrollment_no",
    "enrollmentno": "enrollment_no",
    "attempt_number": "attempt",
    "attempt_no": "attempt",
    "group_discussion": "gd",
    "tech": "technical",
    "rejectedat": "rejected_at",
}

TRUE_VALUES = {"yes", "y", "true", "1", "cleared", "pass", "passed", "selected"}
FALSE_VALUES = {"no", "n", "false", "0", "not cleared", "fail", "failed", "not selected"}

# Ordre des tours : le premier non validé est le tour d'élimination par défaut
ROUNDS = [("gd", "GD"), ("hr", "HR"), ("technical", "Technical")]
ROUND_NAMES = {label.lower(): label for _, label in ROUNDS}


def _normalize_header(raw) -> str:
    """Normalise un nom de colonne : minuscules, espaces → _."""
    key = str(raw or "").strip().lower().replace(" ", "_")
    return COLUMN_ALIASES.get(key, key)


def _detect_separator(sample: str) -> str:
    """Détecte le séparateur CSV (virgule ou point-virgule)."""
    if sample.count(";") >= sample.count(","):
        return ";"
    return ","


def _cell_to_str(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _read_rows(content: bytes, filename: str) -> Tuple[List[str], List[List[str]]]:
    """
    Lit le fichier (.xlsx via openpyxl, sinon CSV) et retourne (en-têtes, lignes).
    Lève ValueError si le fichier est illisible.
    """
    if filename.lower().endswith(".xlsx"):
        try:
            wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
            raise ValueError("Fichier Excel illisible") from exc
        ws = wb.worksheets[0]
        rows = [[_cell_to_str(v) for v in row] for row in ws.iter_rows(values_only=True)]
        wb.close()
    else:
        try:
            text = content.decode("utf-8-sig")  # utf-8-sig gère le BOM Excel
        except UnicodeDecodeError as exc:
            raise ValueError("Fichier CSV illisible (encodage UTF-8 attendu)") from exc
        lines = text.splitlines()
        separator = _detect_separator(lines[0] if lines else "")
        rows = [[cell.strip() for cell in row] for row in csv.reader(io.StringIO(text), delimiter=separator)]

    if not rows:
        return [], []
    return [_normalize_header(h) for h in rows[0]], rows[1:]


def _parse_bool(raw: str) -> Optional[bool]:
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return None


def _parse_row(values: Dict[str, str]) -> MockResultImportRow:
    """Construit une ligne valide ou lève ValueError avec le motif du rejet."""
    enrollment_no = values.get("enrollment_no", "").upper()
    if not enrollment_no:
        raise ValueError("Numéro d'inscription manquant")

    raw_attempt = values.get("attempt", "")
    try:
        attempt = int(float(raw_attempt)) if raw_attempt else 1
    except ValueError:
        raise ValueError(f"Numéro de tentative invalide : {raw_attempt}")
    if attempt < 1:
        raise ValueError(f"Numéro de tentative invalide : {raw_attempt}")

    rounds = {}
    for column, label in ROUNDS:
        raw = values.get(column, "")
        parsed = _parse_bool(raw)
        if parsed is None:
            raise ValueError(f"Valeur invalide pour le tour {label} : '{raw}'")
        rounds[column] = parsed

    raw_selected = values.get("selected", "")
    if raw_selected:
        selected = _parse_bool(raw_selected)
        if selected is None:
            raise ValueError(f"Valeur invalide pour selected : '{raw_selected}'")
    else:
        selected = all(rounds.values())

    raw_rejected_at = values.get("rejected_at", "")
    rejected_at = None
    if raw_rejected_at:
        rejected_at = ROUND_NAMES.get(raw_rejected_at.lower())
        if rejected_at is None:
            raise ValueError(f"Tour d'élimination inconnu : '{raw_rejected_at}'")
    elif not selected:
        rejected_at = next((label for column, label in ROUNDS if not rounds[column]), None)

    return MockResultImportRow(
        enrollment_no=enrollment_no,
        attempt_number=attempt,
        gd_cleared=rounds["gd"],
        hr_cleared=rounds["hr"],
        technical_cleared=rounds["technical"],
        selected=selected,
        rejected_at=None if selected else rejected_at,
    )


def _empty_report(reason: str, content: str = "") -> MockResultImportReport:
    return MockResultImportReport(
        total_rows=0, imported=0, created=0, updated=0, rejected=0,
        errors=[ImportError(row=0, content=content, reason=reason)],
    )


def parse_and_import_results(content: bytes, filename: str, db: Session) -> MockResultImportReport:
    """
    Parse le fichier, valide chaque ligne et fait l'upsert des résultats.

    Règles :
    - Colonnes requises : enrollment_no, gd, hr, technical
    - Colonnes optionnelles : attempt (défaut 1), selected, rejected_at
    - Doublon intra-fichier : même (enrollment_no, attempt)
    - Étudiant inconnu en BDD : ligne rejetée
    """
    try:
        headers, rows = _read_rows(content, filename)
    except ValueError as exc:
        return _empty_report(str(exc))

    if not headers:
        return _empty_report("Fichier vide ou illisible")

    missing = REQUIRED_COLUMNS - set(headers)
    if missing:
        return _empty_report(f"Colonnes manquantes : {', '.join(sorted(missing))}", content=str(headers))

    valid_rows: List[Tuple[int, MockResultImportRow]] = []
    errors: List[ImportError] = []
    seen_in_file: set = set()
    total_rows = 0

    for row_num, raw in enumerate(rows, start=2):  # ligne 1 = en-têtes
        values = {h: (raw[i] if i < len(raw) else "") for i, h in enumerate(headers) if h}

        # Ligne vide
        if not any(values.values()):
            continue
        total_rows += 1

        try:
            row = _parse_row(values)
        except ValueError as exc:
            errors.append(ImportError(row=row_num, content=", ".join(raw), reason=str(exc)))
            continue

        key = (row.enrollment_no, row.attempt_number)
        if key in seen_in_file:
            errors.append(ImportError(
                row=row_num,
                content=f"{row.enrollment_no}, tentative {row.attempt_number}",
                reason="Doublon dans le fichier",
            ))
            continue
        seen_in_file.add(key)
        valid_rows.append((row_num, row))

    if not valid_rows:
        return MockResultImportReport(
            total_rows=total_rows, imported=0, created=0, updated=0,
            rejected=len(errors), errors=errors,
        )

    # Étudiants connus (batch query)
    enrollments = {row.enrollment_no for _, row in valid_rows}
    known = {r[0] for r in db.execute(
        select(Student.enrollment_no).where(Student.enrollment_no.in_(enrollments))
    ).fetchall()}

    # Résultats existants pour l'upsert
    existing = {
        (r.enrollment_no, r.attempt_number): r
        for r in db.execute(
            select(MockInterviewResult).where(MockInterviewResult.enrollment_no.in_(enrollments))
        ).scalars().all()
    }

    created = 0
    updated = 0
    for row_num, row in valid_rows:
        if row.enrollment_no not in known:
            errors.append(ImportError(
                row=row_num,
                content=row.enrollment_no,
                reason="Étudiant inconnu",
            ))
            continue

        fields = row.model_dump(exclude={"enrollment_no", "attempt_number"})
        result = existing.get((row.enrollment_no, row.attempt_number))
        if result is None:
            db.add(MockInterviewResult(
                enrollment_no=row.enrollment_no,
                attempt_number=row.attempt_number,
                **fields,
            ))
            created += 1
        else:
            for field, value in fields.items():
                setattr(result, field, value)
            updated += 1

    if created or updated:
        db.commit()

    logger.info(
        "Import résultats entretiens (%s) : %d créés, %d mis à jour, %d rejetés",
        filename, created, updated, len(errors),
    )
    return MockResultImportReport(
        total_rows=total_rows,
        imported=created + updated,
        created=created,
        updated=updated,
        rejected=len(errors),
        errors=errors,
    )

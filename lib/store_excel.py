# =============================================================================
# lib/store_excel.py - Store Spreadsheet Import / Export
# =============================================================================
# Reads and writes the .xlsx workbook administrators use to maintain stores
# in bulk. The workbook has a single "Tiendas" sheet whose first row holds
# the column headers:
#
#   Nombre tienda | Número tienda | Formato | Provincia | Zona/Cantón | ...
#
# Headers are matched through aliases, ignoring accents, case and
# punctuation, so "Numero de tienda" and "NÚMERO TIENDA" both map to
# store_number. Name, format, province and canton are required columns.
#
# Parsing never raises for bad content: problems are collected as errors
# (blocking) and warnings (informational) keyed by spreadsheet row number.
# =============================================================================

import io
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable

import pandas as pd
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from core.models.store import STORE_FORMAT_OPTIONS
from lib.utils import sanitize_string, strip_accents

logger = logging.getLogger(__name__)

SHEET_NAME = "Tiendas"
WORKBOOK_CREATOR = "KSupervision"


# =============================================================================
# Column Catalogue
# =============================================================================

def _rounded(value: Any) -> float | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return round(float(value), 6)
    return None


@dataclass(frozen=True)
class StoreColumn:
    """One exportable store column."""
    key: str
    header: str
    width: int
    getter: Callable[[dict[str, Any]], Any]
    aliases: list[str] = field(default_factory=list)


def _location(store: dict[str, Any]) -> dict[str, Any]:
    return store.get("location") or {}


STORE_COLUMNS: dict[str, StoreColumn] = {
    column.key: column
    for column in [
        StoreColumn("name", "Nombre tienda", 32, lambda s: s.get("name"),
                    ["nombre", "nombretienda", "tienda"]),
        StoreColumn("store_number", "Número tienda", 18, lambda s: s.get("store_number"),
                    ["numerotienda", "tiendanumero", "codigotienda", "storeid", "numerodetienda"]),
        StoreColumn("format", "Formato", 18, lambda s: s.get("format"),
                    ["formato"]),
        StoreColumn("province", "Provincia", 22, lambda s: s.get("province"),
                    ["provincia"]),
        StoreColumn("canton", "Zona/Cantón", 22, lambda s: s.get("canton"),
                    ["zonacanton", "canton", "zona"]),
        StoreColumn("supervisors", "Supervisores", 36,
                    lambda s: ", ".join(s.get("supervisors") or []) or None,
                    ["supervisores", "supervision", "supervisor"]),
        StoreColumn("latitude", "Latitud", 16, lambda s: _rounded(_location(s).get("latitude")),
                    ["latitud", "latitude"]),
        StoreColumn("longitude", "Longitud", 16, lambda s: _rounded(_location(s).get("longitude")),
                    ["longitud", "longitude"]),
        StoreColumn("address", "Dirección", 48, lambda s: _location(s).get("address"),
                    ["direccion", "address"]),
        StoreColumn("place_id", "Place ID", 36, lambda s: _location(s).get("place_id"),
                    ["placeid", "googleplace", "googleid"]),
        StoreColumn("created_at", "Creado", 22, lambda s: s.get("created_at"),
                    ["creado", "createdat", "fechacreacion"]),
        StoreColumn("updated_at", "Actualizado", 22, lambda s: s.get("updated_at"),
                    ["actualizado", "updatedat", "fechaactualizacion"]),
    ]
}

DEFAULT_EXPORT_COLUMNS = list(STORE_COLUMNS)

REQUIRED_IMPORT_COLUMNS = ["name", "format", "province", "canton"]


def normalize_header(value: str) -> str:
    """'Zona/Cantón' -> 'zonacanton'."""
    return re.sub(r"[^a-z0-9]", "", strip_accents(value).lower())


def normalize_store_name_key(name: str) -> str:
    """Comparison key for store names: accent- and case-insensitive, single spaced."""
    return re.sub(r"\s+", " ", strip_accents(sanitize_string(name)).lower())


def match_column_key(header: str) -> str | None:
    normalized = normalize_header(header)
    if not normalized:
        return None
    for key, column in STORE_COLUMNS.items():
        if any(normalize_header(alias) == normalized for alias in column.aliases):
            return key
    return None


def resolve_format(value: str) -> str | None:
    """Case-insensitive match against the known store formats."""
    normalized = sanitize_string(value).lower()
    if not normalized:
        return None
    for option in STORE_FORMAT_OPTIONS:
        if option.lower() == normalized:
            return option
    return None


def parse_supervisors(value: str) -> list[str]:
    cleaned = sanitize_string(value)
    if not cleaned:
        return []
    return [item.strip() for item in re.split(r"[;,]", cleaned) if item.strip()]


# =============================================================================
# Export
# =============================================================================

def build_store_workbook(
    stores: list[dict[str, Any]],
    keys: list[str] | None = None,
) -> bytes:
    """
    Render stores as an .xlsx workbook.

    Args:
        stores: Store rows
        keys: Column keys to include, in order (defaults to every column)

    Returns:
        Workbook bytes
    """
    keys = keys or DEFAULT_EXPORT_COLUMNS
    columns = [STORE_COLUMNS[key] for key in keys]

    df = pd.DataFrame(
        [[column.getter(store) for column in columns] for store in stores],
        columns=[column.header for column in columns],
    )

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False)

        workbook = writer.book
        workbook.properties.creator = WORKBOOK_CREATOR
        worksheet = writer.sheets[SHEET_NAME]

        for index, column in enumerate(columns, start=1):
            worksheet.column_dimensions[get_column_letter(index)].width = column.width
        for cell in worksheet[1]:
            cell.font = Font(bold=True)
            cell.alignment = Alignment(vertical="center")

        worksheet.freeze_panes = "A2"
        worksheet.auto_filter.ref = f"A1:{get_column_letter(len(columns))}1"

    logger.info(f"Built store workbook with {len(stores)} rows and {len(columns)} columns")
    return buffer.getvalue()


# =============================================================================
# Import
# =============================================================================

@dataclass
class StoreSheetRow:
    """A valid store row read from the spreadsheet."""
    row_number: int
    name: str
    format: str
    province: str
    canton: str
    store_number: str | None = None
    supervisors: list[str] = field(default_factory=list)
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None
    place_id: str | None = None


@dataclass
class StoreSheetParseResult:
    rows: list[StoreSheetRow] = field(default_factory=list)
    provided_columns: list[str] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[dict[str, Any]] = field(default_factory=list)


def _issue(message: str, row_number: int | None = None) -> dict[str, Any]:
    return {"row_number": row_number, "message": message}


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def _parse_coordinate(text: str) -> float | None:
    """'9,9325' and '9.9325' both parse; raises ValueError on anything else."""
    if not text:
        return None
    value = float(text.replace(",", "."))
    if math.isnan(value):
        raise ValueError(text)
    return value


def parse_store_workbook(content: bytes) -> StoreSheetParseResult:
    """
    Read store rows from an uploaded workbook.

    Uses the "Tiendas" sheet, or the first sheet when it is absent.
    Blank rows are skipped. Rows with problems are reported in errors and
    left out of rows.
    """
    result = StoreSheetParseResult()

    try:
        sheets = pd.read_excel(
            io.BytesIO(content),
            sheet_name=None,
            header=None,
            dtype=str,
            engine="openpyxl",
        )
    except Exception as e:
        logger.warning(f"Could not read store workbook: {e}")
        result.errors.append(_issue(
            "The file is not a valid Excel workbook. Use the template exported by the system."
        ))
        return result

    if not sheets:
        result.errors.append(_issue(
            "The file has no worksheets. Use the template exported by the system."
        ))
        return result

    df = sheets.get(SHEET_NAME)
    if df is None:
        df = next(iter(sheets.values()))

    if df.empty or all(_cell_text(value) == "" for value in df.iloc[0].tolist()):
        result.errors.append(_issue(
            "The first row has no column headers. Add the header row and try again."
        ))
        return result

    # Map spreadsheet column positions to store keys
    column_map: dict[int, str] = {}
    for position, header_value in enumerate(df.iloc[0].tolist()):
        header = _cell_text(header_value)
        if not header:
            continue
        key = match_column_key(header)
        if key and key not in column_map.values():
            column_map[position] = key
        elif not key:
            result.warnings.append(_issue(f'Unknown column ignored: "{header}"', 1))

    result.provided_columns = list(column_map.values())

    missing = [key for key in REQUIRED_IMPORT_COLUMNS if key not in result.provided_columns]
    if missing:
        headers = ", ".join(STORE_COLUMNS[key].header for key in missing)
        result.errors.append(_issue(
            f"Missing required columns: {headers}. Add them to the file before importing."
        ))
        return result

    seen_names: dict[str, int] = {}

    for offset, values in enumerate(df.iloc[1:].itertuples(index=False), start=2):
        row_number = offset
        texts = {key: _cell_text(values[position]) for position, key in column_map.items()}

        if not any(texts.values()):
            continue

        coordinates: dict[str, float | None] = {}
        for key in ("latitude", "longitude"):
            try:
                coordinates[key] = _parse_coordinate(texts.get(key, ""))
            except ValueError:
                label = STORE_COLUMNS[key].header
                result.errors.append(_issue(f"{label} is not a valid number", row_number))
                coordinates[key] = None

        name = texts.get("name", "")
        if not name:
            result.errors.append(_issue("Column 'Nombre tienda' is required and empty.", row_number))
            continue

        name_key = normalize_store_name_key(name)
        if name_key in seen_names:
            result.errors.append(_issue(
                f'Store "{name}" appears more than once in the file (row {seen_names[name_key]}).',
                row_number,
            ))
            continue
        seen_names[name_key] = row_number

        format_value = texts.get("format", "")
        store_format = resolve_format(format_value)
        if not store_format:
            result.errors.append(_issue(
                f'Format "{format_value}" is not valid. Use one of: {", ".join(STORE_FORMAT_OPTIONS)}.',
                row_number,
            ))
            continue

        province = texts.get("province", "")
        if not province:
            result.errors.append(_issue("Column 'Provincia' is required and empty.", row_number))
            continue

        canton = texts.get("canton", "")
        if not canton:
            result.errors.append(_issue("Column 'Zona/Cantón' is required and empty.", row_number))
            continue

        result.rows.append(StoreSheetRow(
            row_number=row_number,
            name=name,
            format=store_format,
            province=province,
            canton=canton,
            store_number=texts.get("store_number") or None,
            supervisors=parse_supervisors(texts.get("supervisors", "")),
            latitude=coordinates["latitude"],
            longitude=coordinates["longitude"],
            address=texts.get("address") or None,
            place_id=texts.get("place_id") or None,
        ))

    logger.info(
        f"Parsed store workbook: {len(result.rows)} rows, "
        f"{len(result.errors)} errors, {len(result.warnings)} warnings"
    )
    return result

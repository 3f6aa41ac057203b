"""
Core constants — **Single Source of Truth** for project-wide magic values.

Any business rule that references one of these values should import it
from here instead of hardcoding, so that the forms, the list endpoints and
the analytics stay in agreement.
"""

# ── Administrative geography (Kota Sorong) ──────────────────────────
# District → sub-districts.  A report's ``sub_district`` must belong to
# its ``district``.
DISTRICT_SUBDISTRICT_MAP: dict[str, list[str]] = {
    "Sorong": ["Klademak", "Kofkerbu", "Remu", "Remu Utara"],
    "Sorong Kota": ["Kampung Baru", "Klabala", "Klakublik", "Klasuur"],
    "Sorong Manoi": ["Klaligi", "Klasabi", "Malabutor", "Malawei", "Remu Selatan"],
    "Sorong Timur": ["Kladufu", "Klamana", "Klawalu", "Klawuyuk"],
    "Klaurung": ["Giwu", "Klablim", "Klasaman", "Klasuat"],
    "Malaimsimsa": ["Klabulu", "Klagete", "Malaingkedi", "Malamso"],
    "Sorong Utara": ["Matalamagi", "Malasilen", "Malanu", "Sawagumu"],
    "Sorong Barat": ["Klawasi", "Rufei", "Pal Putih", "Puncak Cendrawasih"],
    "Sorong Kepulauan": ["Dum Barat", "Dum Timur", "Raam", "Soop"],
    "Maladum Mes": ["Saoka", "Suprau", "Tampa Garam", "Tanjung Kasuari"],
}

# ── Pagination ──────────────────────────────────────────────────────
REPORT_LIST_PAGE_SIZE: int = 20
VEHICLE_LIST_PAGE_SIZE: int = 15

# ── Rankings ────────────────────────────────────────────────────────
TOP_RANKING_LIMIT: int = 5      # units, personnel, vehicle types
TOP_CATEGORY_LIMIT: int = 7     # dashboard "top case types"

# ── Labels ──────────────────────────────────────────────────────────
UNKNOWN_VEHICLE_TYPE: str = "Tidak Diketahui"
SOFT_DELETE_HISTORY_NOTE: str = "Laporan dihapus (Soft Delete)"
NO_DATA_MESSAGE: str = "Tidak ada data laporan untuk ditampilkan."

"""
Excel Parser - Sales Sheet Import
=================================

Parses an Excel or CSV sales sheet and auto-detects the customer columns.
Supports .xlsx, .xls, and .csv formats. Rows come back as dicts ready for
CustomerManager.bulk_create, which applies the real validation.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from ...domain.formatters import clean_phone

logger = logging.getLogger(__name__)

# Common column name variations for auto-detection
NAME_PATTERNS = ['name', 'customer', 'client', 'full_name', 'fullname', 'customer_name', 'client_name']
PHONE_PATTERNS = ['phone', 'mobile', 'cell', 'telephone', 'contact', 'number', 'phone_number', 'mobile_number', 'whatsapp']
DATE_PATTERNS = ['purchase_date', 'purchase date', 'sale_date', 'sale date', 'date', 'sold_on', 'invoice_date']
PRODUCT_ID_PATTERNS = ['product_id', 'product id', 'sku', 'model_no', 'item_id']
PRODUCT_PATTERNS = ['product', 'item', 'laptop', 'model', 'product_name', 'item_name', 'purchased']
EMAIL_PATTERNS = ['email', 'e-mail', 'mail']
NOTES_PATTERNS = ['notes', 'note', 'remarks', 'comment']


class ExcelParser:
    """
    Universal Excel/CSV parser with auto-detection of sales columns.

    Usage:
        parser = ExcelParser()
        rows, columns = parser.parse("sales.xlsx")
        # rows: [{"name": "Asif", "phone": "9876543210", "purchase_date": datetime(...),
        #         "product_id": "tp-x1", "product_details": {"title": "ThinkPad X1"}, ...}]
    """

    def __init__(self, dayfirst: bool = False):
        self.dayfirst = dayfirst
        self.detected_columns: Dict[str, Optional[str]] = {}

    def parse(self, file_path: str, sheet_name: Optional[str] = None) -> Tuple[List[Dict[str, Any]], Dict[str, Optional[str]]]:
        """
        Parse Excel/CSV file and return customer rows.

        Args:
            file_path: Path to the file (.xlsx, .xls, .csv)
            sheet_name: Optional sheet name for Excel files

        Returns:
            Tuple of (rows list, detected column mapping)
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        ext = path.suffix.lower()
        if ext == '.csv':
            df = pd.read_csv(file_path, dtype=str)
        elif ext in ['.xlsx', '.xls']:
            df = pd.read_excel(file_path, sheet_name=sheet_name or 0, dtype=object)
        else:
            raise ValueError(f"Unsupported file format: {ext}. Use .xlsx, .xls, or .csv")

        return self.parse_frame(df), self.detected_columns

    def parse_frame(self, df: pd.DataFrame) -> List[Dict[str, Any]]:
        """Extract customer rows from an already-loaded DataFrame."""
        df = df.copy()
        df.columns = [str(c).strip().lower() for c in df.columns]
        columns = list(df.columns)

        product_id_col = self._find_column(columns, PRODUCT_ID_PATTERNS)
        remaining = [c for c in columns if c != product_id_col]

        self.detected_columns = {
            'name': self._find_column(remaining, NAME_PATTERNS),
            'phone': self._find_column(remaining, PHONE_PATTERNS),
            'purchase_date': self._find_column(remaining, DATE_PATTERNS),
            'product_id': product_id_col,
            'product': self._find_column(remaining, PRODUCT_PATTERNS),
            'email': self._find_column(remaining, EMAIL_PATTERNS),
            'notes': self._find_column(remaining, NOTES_PATTERNS),
        }
        logger.info(f"Detected columns: {self.detected_columns}")

        for required in ('name', 'phone', 'purchase_date'):
            if not self.detected_columns[required]:
                raise ValueError(f"Could not detect '{required}' column. Please ensure your file has one.")
        if not self.detected_columns['product_id'] and not self.detected_columns['product']:
            raise ValueError("Could not detect a product column. Please ensure your file has one.")

        rows = []
        for _, record in df.iterrows():
            name = self._cell(record, 'name')
            if not name:
                continue

            product_title = self._cell(record, 'product')
            product_id = self._cell(record, 'product_id') or product_title

            rows.append({
                'name': name,
                'phone': clean_phone(self._cell(record, 'phone')),
                'purchase_date': self._parse_date(record.get(self.detected_columns['purchase_date'])),
                'product_id': product_id,
                'product_details': {'title': product_title} if product_title else {},
                'email': self._cell(record, 'email'),
                'notes': self._cell(record, 'notes'),
            })

        logger.info(f"Parsed {len(rows)} customer rows")
        return rows

    def _cell(self, record: pd.Series, key: str) -> str:
        column = self.detected_columns.get(key)
        if not column:
            return ''
        value = record.get(column)
        if value is None or pd.isna(value):
            return ''
        return str(value).strip()

    def _parse_date(self, value: Any):
        """pandas Timestamp -> datetime, or None when the cell is empty or unparseable."""
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        timestamp = pd.to_datetime(value, dayfirst=self.dayfirst, errors='coerce')
        if pd.isna(timestamp):
            logger.warning(f"Unparseable purchase date: {value!r}")
            return None
        return timestamp.to_pydatetime()

    def _find_column(self, columns: List[str], patterns: List[str]) -> Optional[str]:
        """Find column matching any of the patterns (exact match wins)."""
        for col in columns:
            if col in patterns:
                return col
        for col in columns:
            for pattern in patterns:
                if pattern in col:
                    return col
        return None


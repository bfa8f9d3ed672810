from .excel_parser import ExcelParser

__all__ = ["ExcelParser"]

"""
Output module for reconciliation run reports.
"""
from .report_generator import generate_report_excel, results_dataframe

__all__ = ['generate_report_excel', 'results_dataframe']

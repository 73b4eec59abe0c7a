"""
Utils package - input loading and result export for recovery runs
"""
from .input_reader import parse_value, read_observed_outputs
from .results_writer import build_record, save_results

__all__ = ['parse_value', 'read_observed_outputs', 'build_record', 'save_results']

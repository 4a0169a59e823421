"""
实验模块 - 模型对比和结果导出
"""

from .runner import ModelComparisonRunner, DEFAULT_SAMPLE_TEXTS, load_sample_texts
from .exporter import ResultExporter, CSVExporter, ExcelExporter, JSONExporter, FieldMapper

__all__ = [
    'ModelComparisonRunner',
    'DEFAULT_SAMPLE_TEXTS',
    'load_sample_texts',
    'ResultExporter',
    'CSVExporter',
    'ExcelExporter',
    'JSONExporter',
    'FieldMapper'
]

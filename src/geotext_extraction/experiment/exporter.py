"""
结果导出器 - 多格式导出系统
"""

import json
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime
import logging
from threading import Lock

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font

from ..core import (
    ComparisonRecord,
    ConfigLoader,
    ExtractionResult,
    ResolvedLocation,
    get_config_loader
)
from ..core.config import VALID_OUTPUT_FORMATS
from ..core.exceptions import ExportException, UnsupportedExportFormatException

logger = logging.getLogger(__name__)

LOCATION_COLUMNS = [
    'document_name', 'model_used', 'name', 'description', 'latitude', 'longitude',
    'confidence', 'sources', 'raw_mentions', 'processing_time_ms'
]

RECORD_COLUMNS = [
    'model', 'text_index', 'repetition', 'text_preview', 'succeeded',
    'location_count', 'location_names', 'duration_ms', 'error'
]


class FieldMapper:
    """字段映射器 - 负责将数据模型映射为导出格式"""

    def __init__(self, config_loader: ConfigLoader):
        self.config_loader = config_loader
        self.null_unresolved = bool(config_loader.get('output.null_unresolved_coordinates', False))

    def map_location_to_dict(self, location: ResolvedLocation, result: ExtractionResult) -> Dict[str, Any]:
        """将地点映射为表格行"""
        data = location.to_dict(self.null_unresolved)
        return {
            'document_name': result.metadata.get('document_name', ''),
            'model_used': result.model_used,
            'name': data['name'],
            'description': data['description'],
            'latitude': data['latitude'],
            'longitude': data['longitude'],
            'confidence': data['confidence'],
            'sources': ', '.join(data['sources']),
            'raw_mentions': ' | '.join(data['raw_mentions']),
            'processing_time_ms': result.processing_time_ms
        }

    def map_result_stats(self, result: ExtractionResult) -> Dict[str, Any]:
        """单次结果的统计行"""
        row = {
            'document_name': result.metadata.get('document_name', ''),
            'model_used': result.model_used,
            'input_length': result.input_length,
            'processing_time_ms': result.processing_time_ms,
            'location_count': len(result.locations),
            'resolved_count': result.resolved_count,
            'error_count': len(result.errors),
        }
        row.update({f'confidence_{k}': v for k, v in result.confidence_breakdown().items()})
        return row

    def map_results(self, results: List[ExtractionResult]) -> List[Dict[str, Any]]:
        rows = []
        for result in results:
            for location in result.locations:
                rows.append(self.map_location_to_dict(location, result))
        return rows


class CSVExporter:
    """CSV格式导出器"""

    def __init__(self, config_loader: ConfigLoader):
        self.config_loader = config_loader
        self.field_mapper = FieldMapper(config_loader)

    def export_results_to_csv(self, results: List[ExtractionResult], output_file: Path) -> str:
        """导出结果为CSV格式，每个地点一行"""
        rows = self.field_mapper.map_results(results)
        if not rows:
            logger.warning("没有结果数据，创建空CSV文件")

        df = pd.DataFrame(rows, columns=LOCATION_COLUMNS)
        df.to_csv(output_file, index=False, encoding='utf-8-sig')
        logger.info(f"CSV导出完成: {output_file}, 共 {len(rows)} 行")
        return str(output_file)

    def export_records_to_csv(
        self,
        records: List[ComparisonRecord],
        summary: Optional[pd.DataFrame],
        output_file: Path
    ) -> str:
        """导出对比记录；有汇总时另存一个 _summary 文件"""
        df = pd.DataFrame([r.to_dict() for r in records], columns=RECORD_COLUMNS)
        df.to_csv(output_file, index=False, encoding='utf-8-sig')

        if summary is not None and not summary.empty:
            summary_file = output_file.with_name(f"{output_file.stem}_summary{output_file.suffix}")
            summary.to_csv(summary_file, index=False, encoding='utf-8-sig')
            logger.info(f"汇总CSV导出完成: {summary_file}")

        logger.info(f"对比记录CSV导出完成: {output_file}, 共 {len(records)} 行")
        return str(output_file)


class ExcelExporter:
    """Excel格式导出器"""

    def __init__(self, config_loader: ConfigLoader):
        self.config_loader = config_loader
        self.field_mapper = FieldMapper(config_loader)

    def export_results_to_excel(self, results: List[ExtractionResult], output_file: Path) -> str:
        """导出结果为Excel格式（地点汇总 + 统计）"""
        wb = Workbook()

        ws = wb.active
        ws.title = "地点汇总"
        self._write_rows(ws, self.field_mapper.map_results(results), LOCATION_COLUMNS)

        stats_ws = wb.create_sheet("统计")
        stats_rows = [self.field_mapper.map_result_stats(r) for r in results]
        self._write_rows(stats_ws, stats_rows)

        wb.save(output_file)
        logger.info(f"Excel导出完成: {output_file}")
        return str(output_file)

    def export_records_to_excel(
        self,
        records: List[ComparisonRecord],
        summary: Optional[pd.DataFrame],
        output_file: Path
    ) -> str:
        """导出对比记录（明细 + 模型汇总）"""
        wb = Workbook()

        ws = wb.active
        ws.title = "运行明细"
        self._write_rows(ws, [r.to_dict() for r in records], RECORD_COLUMNS)

        if summary is not None and not summary.empty:
            summary_ws = wb.create_sheet("模型汇总")
            self._write_rows(summary_ws, summary.to_dict(orient='records'), list(summary.columns))

        wb.save(output_file)
        logger.info(f"对比记录Excel导出完成: {output_file}")
        return str(output_file)

    def _write_rows(self, ws, rows: List[Dict[str, Any]], headers: Optional[List[str]] = None):
        """写入表头和数据行"""
        if headers is None:
            headers = list(rows[0].keys()) if rows else []

        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = Font(bold=True)

        for row, data in enumerate(rows, 2):
            for col, header in enumerate(headers, 1):
                ws.cell(row=row, column=col, value=self._cell_value(data.get(header)))

    @staticmethod
    def _cell_value(value: Any) -> Any:
        # numpy 标量和 NaN 需要转换为 openpyxl 可写的类型
        if value is None:
            return None
        if hasattr(value, 'item'):
            value = value.item()
        if isinstance(value, float) and value != value:
            return None
        return value


class JSONExporter:
    """JSON格式导出器"""

    def __init__(self, config_loader: ConfigLoader):
        self.config_loader = config_loader
        self.null_unresolved = bool(config_loader.get('output.null_unresolved_coordinates', False))

    def export_results_to_json(self, results: List[ExtractionResult], output_file: Path) -> str:
        """导出结果为JSON格式，每个结果保持对外响应结构"""
        data = {
            'export_info': {
                'export_time': datetime.now().isoformat(),
                'total_results': len(results),
                'total_locations': sum(len(r.locations) for r in results)
            },
            'results': [self._result_to_dict(r) for r in results]
        }
        self._write(data, output_file)
        logger.info(f"JSON导出完成: {output_file}")
        return str(output_file)

    def export_records_to_json(
        self,
        records: List[ComparisonRecord],
        summary: Optional[pd.DataFrame],
        output_file: Path
    ) -> str:
        """导出对比记录和汇总"""
        data = {
            'export_info': {
                'export_time': datetime.now().isoformat(),
                'total_records': len(records)
            },
            'summary': summary.to_dict(orient='records') if summary is not None else [],
            'records': [r.to_dict() for r in records]
        }
        self._write(data, output_file)
        logger.info(f"对比记录JSON导出完成: {output_file}")
        return str(output_file)

    def _result_to_dict(self, result: ExtractionResult) -> Dict[str, Any]:
        data = result.to_response(self.null_unresolved)
        data['created_at'] = result.created_at
        data['errors'] = result.errors
        data['metadata'] = result.metadata
        return data

    def _write(self, data: Dict[str, Any], output_file: Path):
        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2, default=self._json_serializer)

    def _json_serializer(self, obj):
        """JSON序列化器，处理特殊类型"""
        if isinstance(obj, datetime):
            return obj.isoformat()
        elif hasattr(obj, 'item'):
            return obj.item()
        elif hasattr(obj, 'to_dict'):
            return obj.to_dict()
        else:
            return str(obj)


class ResultExporter:
    """统一结果导出器"""

    EXTENSIONS = {'csv': 'csv', 'excel': 'xlsx', 'json': 'json'}

    def __init__(self, config_loader: Optional[ConfigLoader] = None):
        self.config_loader = config_loader or get_config_loader()

        self.csv_exporter = CSVExporter(self.config_loader)
        self.excel_exporter = ExcelExporter(self.config_loader)
        self.json_exporter = JSONExporter(self.config_loader)

        self._export_lock = Lock()

    def _output_file(self, output_dir: Path, prefix: str, format_type: str, timestamp: str) -> Path:
        return output_dir / f"{prefix}_{timestamp}.{self.EXTENSIONS[format_type]}"

    def export_results(
        self,
        results: List[ExtractionResult],
        output_dir: Path,
        formats: List[str] = None,
        filename_prefix: str = "locations"
    ) -> Dict[str, str]:
        """
        导出提取结果

        Args:
            results: 提取结果列表
            output_dir: 输出目录
            formats: 导出格式列表，默认使用配置 output.formats
            filename_prefix: 文件名前缀

        Returns:
            格式到文件路径的映射（失败的格式不在其中）
        """
        writers = {
            'csv': self.csv_exporter.export_results_to_csv,
            'excel': self.excel_exporter.export_results_to_excel,
            'json': self.json_exporter.export_results_to_json,
        }
        return self._export(writers, (results,), output_dir, formats, filename_prefix)

    def export_comparison(
        self,
        records: List[ComparisonRecord],
        summary: Optional[pd.DataFrame],
        output_dir: Path,
        formats: List[str] = None,
        filename_prefix: str = "model_comparison"
    ) -> Dict[str, str]:
        """
        导出模型对比实验记录

        Args:
            records: 运行记录
            summary: 每个模型的汇总表
            output_dir: 输出目录
            formats: 导出格式列表
            filename_prefix: 文件名前缀

        Returns:
            格式到文件路径的映射
        """
        writers = {
            'csv': self.csv_exporter.export_records_to_csv,
            'excel': self.excel_exporter.export_records_to_excel,
            'json': self.json_exporter.export_records_to_json,
        }
        return self._export(writers, (records, summary), output_dir, formats, filename_prefix)

    def _export(self, writers, args, output_dir, formats, filename_prefix) -> Dict[str, str]:
        if formats is None:
            formats = self.config_loader.get('output.formats', ['json']) or ['json']

        output_dir = Path(output_dir)
        with self._export_lock:
            output_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

            exported_files = {}
            for format_type in formats:
                format_type = format_type.lower()
                if format_type not in writers:
                    logger.warning(f"不支持的导出格式: {format_type}")
                    continue

                output_file = self._output_file(output_dir, filename_prefix, format_type, timestamp)
                try:
                    exported_files[format_type] = writers[format_type](*args, output_file)
                except (OSError, ValueError) as e:
                    logger.error(f"导出 {format_type} 格式失败: {str(e)}")
                    continue

                logger.info(f"成功导出 {format_type.upper()} 格式: {exported_files[format_type]}")

            return exported_files

    def export_single_result(
        self,
        result: ExtractionResult,
        output_dir: Path,
        format_type: str
    ) -> str:
        """
        按格式导出单个结果

        Raises:
            UnsupportedExportFormatException: 不支持的格式
            ExportException: 写入失败
        """
        format_type = format_type.lower()
        if format_type not in VALID_OUTPUT_FORMATS:
            raise UnsupportedExportFormatException(
                f"Unsupported export format: {format_type}",
                details={'supported_formats': VALID_OUTPUT_FORMATS}
            )

        stem = Path(result.metadata.get('document_name') or 'text').stem.replace('.', '_')
        exported = self.export_results([result], Path(output_dir), [format_type], stem)
        if format_type not in exported:
            raise ExportException(f"Failed to export {format_type} to {output_dir}")
        return exported[format_type]

    def get_export_summary(self) -> Dict[str, Any]:
        """获取导出器摘要"""
        return {
            'supported_formats': list(VALID_OUTPUT_FORMATS),
            'null_unresolved_coordinates': self.json_exporter.null_unresolved,
            'exporters': {
                'csv': 'CSVExporter',
                'excel': 'ExcelExporter',
                'json': 'JSONExporter'
            }
        }

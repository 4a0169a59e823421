"""
模型对比实验 - 多个提取模型在同一批文本上的表现对比
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any, Sequence

import numpy as np
import pandas as pd

from .exporter import ResultExporter
from ..core import (
    ComparisonRecord,
    ConfigLoader,
    get_config_loader,
    load_config_file,
    setup_logging
)
from ..core.exceptions import ConfigNotFoundException, ExperimentException, GeoTextException
from ..extraction import LocationExtractor
from ..llm import LLMClientFactory

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_TEXTS = [
    "Visit the Eiffel Tower in Paris and Big Ben in London",
    "Trip to Tokyo, Berlin, and Sydney next summer",
    "Meeting at 1600 Pennsylvania Avenue NW, Washington, DC",
    "Ich reise nach München, dann nach Hamburg",
    "See the Grand Canyon, then fly to Las Vegas",
]

SUMMARY_COLUMNS = [
    'model', 'runs', 'success_rate', 'mean_duration_ms', 'std_duration_ms',
    'mean_location_count', 'count_agreement', 'name_overlap'
]


def load_sample_texts(file_path: str) -> List[str]:
    """
    读取样本文本文件，每行一条，忽略空行

    Raises:
        ExperimentException: 文件不存在或没有有效内容
    """
    path = Path(file_path)
    if not path.exists():
        raise ExperimentException(f"Samples file not found: {file_path}")

    texts = [line.strip() for line in path.read_text(encoding='utf-8').splitlines() if line.strip()]
    if not texts:
        raise ExperimentException(f"Samples file is empty: {file_path}")
    return texts


class ModelComparisonRunner:
    """
    模型对比执行器

    每个模型作为单独的提取阶段运行（不做回退），同一条文本上各模型并发调用。
    第一个模型作为参照，用于计算数量一致率和名称重合度。
    """

    def __init__(
        self,
        models: Optional[List[str]] = None,
        config_loader: Optional[ConfigLoader] = None,
        extractors: Optional[Sequence[LocationExtractor]] = None
    ):
        """
        初始化执行器

        Args:
            models: 要对比的模型名称，None 时使用 experiment.models
            config_loader: 配置加载器
            extractors: 直接指定提取器（优先于 models）

        Raises:
            ExperimentException: 没有可用的模型
        """
        self.config_loader = config_loader or get_config_loader()
        experiment_config = self.config_loader.get_experiment_config()

        self.repetitions = int(experiment_config.get('repetitions', 1) or 1)
        self.output_dir = Path(experiment_config.get('output_dir') or './experiment_results')
        self.samples_file = experiment_config.get('samples_file')

        if extractors is not None:
            self.extractors = list(extractors)
        else:
            self.extractors = self._build_extractors(models or experiment_config.get('models') or [])

        if not self.extractors:
            raise ExperimentException("No models available for comparison")

        self.exporter = ResultExporter(self.config_loader)

    def _build_extractors(self, models: List[str]) -> List[LocationExtractor]:
        timeout = self.config_loader.get('llm.timeout')
        extractors = []
        for model_name in models:
            try:
                client = LLMClientFactory.create(model_name, self.config_loader)
            except GeoTextException as e:
                logger.warning(f"跳过模型 {model_name}: {e}")
                continue
            extractors.append(LocationExtractor(client, timeout=timeout))
        return extractors

    @property
    def model_ids(self) -> List[str]:
        return [e.model_id for e in self.extractors]

    def get_sample_texts(self, texts: Optional[List[str]] = None) -> List[str]:
        if texts:
            return list(texts)
        if self.samples_file:
            return load_sample_texts(self.samples_file)
        return list(DEFAULT_SAMPLE_TEXTS)

    async def run_async(
        self,
        texts: Optional[List[str]] = None,
        repetitions: Optional[int] = None
    ) -> List[ComparisonRecord]:
        """
        运行对比实验

        Args:
            texts: 样本文本，None 时使用配置文件或内置样本
            repetitions: 重复轮数

        Returns:
            运行记录列表（按轮次、文本、模型排序）
        """
        texts = self.get_sample_texts(texts)
        repetitions = repetitions or self.repetitions

        logger.info(f"开始模型对比: {len(self.extractors)} 个模型 × {len(texts)} 条文本 × {repetitions} 轮")

        records = []
        for repetition in range(1, repetitions + 1):
            for index, text in enumerate(texts):
                attempts = await asyncio.gather(*(e.extract(text) for e in self.extractors))
                for attempt in attempts:
                    record = ComparisonRecord.from_attempt(attempt, index, repetition, text[:60])
                    records.append(record)
                    status = f"{record.location_count} 个地点" if record.succeeded else f"失败: {record.error}"
                    logger.info(f"[轮次{repetition}] 文本{index} {record.model}: {status} ({record.duration_ms:.0f} ms)")

        return records

    def summarize(self, records: List[ComparisonRecord]) -> pd.DataFrame:
        """
        按模型汇总

        count_agreement: 与参照模型（第一个模型）在同一文本同一轮次上地点数量相同的比例
        name_overlap: 与参照模型地点名称集合（忽略大小写）的平均 Jaccard 相似度
        """
        if not records:
            return pd.DataFrame(columns=SUMMARY_COLUMNS)

        reference_model = self.model_ids[0] if self.extractors else records[0].model
        reference = {
            (r.text_index, r.repetition): r
            for r in records if r.model == reference_model and r.succeeded
        }

        rows = []
        for model in dict.fromkeys(r.model for r in records):
            model_records = [r for r in records if r.model == model]
            succeeded = [r for r in model_records if r.succeeded]
            durations = np.array([r.duration_ms for r in model_records], dtype=float)
            counts = np.array([r.location_count for r in succeeded], dtype=float)

            agreements = []
            overlaps = []
            for r in succeeded:
                ref = reference.get((r.text_index, r.repetition))
                if ref is None:
                    continue
                agreements.append(float(r.location_count == ref.location_count))
                overlaps.append(self._jaccard(r.location_names, ref.location_names))

            rows.append({
                'model': model,
                'runs': len(model_records),
                'success_rate': len(succeeded) / len(model_records),
                'mean_duration_ms': float(np.mean(durations)),
                'std_duration_ms': float(np.std(durations)),
                'mean_location_count': float(np.mean(counts)) if counts.size else 0.0,
                'count_agreement': float(np.mean(agreements)) if agreements else None,
                'name_overlap': float(np.mean(overlaps)) if overlaps else None,
            })

        return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)

    @staticmethod
    def _jaccard(names: List[str], other: List[str]) -> float:
        a = {n.lower() for n in names}
        b = {n.lower() for n in other}
        if not a and not b:
            return 1.0
        return len(a & b) / len(a | b)

    def run(
        self,
        texts: Optional[List[str]] = None,
        repetitions: Optional[int] = None,
        formats: Optional[List[str]] = None,
        save_results: bool = True
    ) -> Dict[str, Any]:
        """
        同步运行实验并导出结果

        Returns:
            {'records', 'summary', 'exported_files', 'start_time', 'end_time'}
        """
        start_time = datetime.now()
        records = asyncio.run(self._run_and_close(texts, repetitions))
        summary = self.summarize(records)

        exported_files = {}
        if save_results:
            exported_files = self.exporter.export_comparison(records, summary, self.output_dir, formats)

        self._log_summary(summary)
        return {
            'records': records,
            'summary': summary,
            'exported_files': exported_files,
            'start_time': start_time.isoformat(),
            'end_time': datetime.now().isoformat()
        }

    async def _run_and_close(self, texts, repetitions) -> List[ComparisonRecord]:
        try:
            return await self.run_async(texts, repetitions)
        finally:
            for extractor in self.extractors:
                await extractor.llm_client.close()

    def _log_summary(self, summary: pd.DataFrame):
        logger.info("=" * 60)
        logger.info("模型对比汇总")
        for row in summary.to_dict(orient='records'):
            logger.info(
                f"  {row['model']}: 成功率 {row['success_rate']:.0%}, "
                f"平均耗时 {row['mean_duration_ms']:.0f} ms, 平均地点数 {row['mean_location_count']:.1f}"
            )
        logger.info("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='geotext-experiment',
        description='Compare location extraction across LLM models'
    )
    parser.add_argument('--models', nargs='+', help='model ids (default: experiment.models)')
    parser.add_argument('--samples', help='text file with one sample per line')
    parser.add_argument('--repetitions', type=int, help='number of rounds')
    parser.add_argument('--format', dest='formats', nargs='+', choices=['csv', 'excel', 'json'],
                        help='export formats (default: output.formats)')
    parser.add_argument('--output-dir', help='directory for exported results')
    parser.add_argument('--config', help='path to config.yaml')
    parser.add_argument('--log-level', help='logging level')
    parser.add_argument('--no-save', action='store_true', help='do not export results')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """geotext-experiment 命令入口"""
    args = build_parser().parse_args(argv)

    try:
        config_loader = load_config_file(args.config) if args.config else get_config_loader()
    except ConfigNotFoundException as e:
        print(f"配置错误: {e}", file=sys.stderr)
        return 1
    setup_logging(config_loader, args.log_level)

    if args.samples:
        config_loader.set('experiment.samples_file', args.samples)
    if args.output_dir:
        config_loader.set('experiment.output_dir', args.output_dir)

    try:
        runner = ModelComparisonRunner(models=args.models, config_loader=config_loader)
        results = runner.run(
            repetitions=args.repetitions,
            formats=args.formats,
            save_results=not args.no_save
        )
    except ExperimentException as e:
        logger.error(f"实验失败: {e}")
        return 1

    print(json.dumps(
        {
            'summary': results['summary'].to_dict(orient='records'),
            'exported_files': results['exported_files']
        },
        ensure_ascii=False,
        indent=2,
        default=str
    ))
    return 0


if __name__ == '__main__':
    sys.exit(main())

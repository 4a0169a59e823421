"""
文档读取 - 把纯文本、Markdown 和 Word 文档转换为待分析的文本
"""

import re
import logging
from pathlib import Path
from typing import List, Dict, Any

from docx import Document
from docx.oxml.table import CT_Tbl
from docx.oxml.text.paragraph import CT_P
from docx.table import Table
from docx.text.paragraph import Paragraph

from ..core.exceptions import (
    DocumentNotFoundException,
    DocumentReadException,
    UnsupportedDocumentFormatException
)

logger = logging.getLogger(__name__)

TEXT_FORMATS = ['.txt', '.md']
WORD_FORMATS = ['.docx']


class DocumentProcessor:
    """
    文档处理器

    Word 文档按正文顺序输出段落和表格，表格每行的单元格用分号连接。
    """

    def __init__(self, encoding: str = 'utf-8'):
        self.encoding = encoding
        self.supported_formats = TEXT_FORMATS + WORD_FORMATS

    def process_document(self, file_path: str) -> str:
        """
        读取文档内容

        Args:
            file_path: 文档路径

        Returns:
            文本内容

        Raises:
            DocumentNotFoundException: 文件不存在
            UnsupportedDocumentFormatException: 不支持的格式
            DocumentReadException: 读取失败
        """
        path = Path(file_path)

        if not path.exists():
            raise DocumentNotFoundException(
                f"Document not found: {file_path}",
                details={'path': str(path.absolute())}
            )

        suffix = path.suffix.lower()
        if suffix not in self.supported_formats:
            raise UnsupportedDocumentFormatException(
                f"Unsupported format: {path.suffix}",
                details={
                    'file': file_path,
                    'supported_formats': self.supported_formats
                }
            )

        if suffix in WORD_FORMATS:
            return self.read_docx(path)
        return self.read_text(path)

    def read_text(self, file_path: Path) -> str:
        """读取纯文本或Markdown文件"""
        try:
            content = file_path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadException(
                f"Failed to read document: {e}",
                details={'file': str(file_path)}
            ) from e

        logger.info(f"读取文档 {file_path.name}, 内容长度: {len(content)}")
        return content

    def read_docx(self, file_path: Path) -> str:
        """
        读取Word文档

        Raises:
            DocumentReadException: 文档损坏或无法打开
        """
        try:
            doc = Document(str(file_path))
        except Exception as e:
            raise DocumentReadException(
                f"Failed to read document: {e}",
                details={'file': str(file_path)}
            ) from e

        lines: List[str] = []
        for element in doc.element.body:
            if isinstance(element, CT_P):
                text = Paragraph(element, doc).text.strip()
                if text:
                    lines.append(text)
            elif isinstance(element, CT_Tbl):
                lines.extend(self._table_lines(Table(element, doc)))

        content = '\n'.join(lines)
        content = re.sub(r'\n{3,}', '\n\n', content)

        logger.info(f"成功转换文档 {file_path.name}, 内容长度: {len(content)}")
        return content

    def _table_lines(self, table: Table) -> List[str]:
        lines = []
        for row in table.rows:
            cells = []
            for cell in row.cells:
                cell_text = ' '.join(p.text.strip() for p in cell.paragraphs if p.text.strip())
                cell_text = re.sub(r'\s+', ' ', cell_text)
                if cell_text:
                    cells.append(cell_text)
            if cells:
                lines.append('; '.join(cells))
        return lines

    def get_document_metadata(self, file_path: str) -> Dict[str, Any]:
        """
        获取文档基本信息

        Raises:
            DocumentNotFoundException: 文件不存在
        """
        path = Path(file_path)
        if not path.exists():
            raise DocumentNotFoundException(f"Document not found: {file_path}")

        stat = path.stat()
        return {
            'document_name': path.name,
            'format': path.suffix.lower(),
            'size_bytes': stat.st_size,
        }


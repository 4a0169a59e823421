"""
GeoText 地点提取与地理编码系统安装配置
"""

from setuptools import setup, find_packages
from pathlib import Path

# 读取README文件
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8') if (this_directory / "README.md").exists() else ""

requirements = [
    "openai>=1.40.0",
    "httpx>=0.27.0",
    "PyYAML>=6.0",
    "pandas>=2.0.0",
    "numpy>=1.24.0",
    "python-docx>=1.1.0",
    "openpyxl>=3.1.0",
]

setup(
    name="geotext-extraction",
    version="1.0.0",
    author="GeoText Team",
    author_email="team@geotext-api.dev",
    description="基于LLM的文本地点提取与多来源地理编码系统",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/geotext-api/geotext-extraction",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: GIS",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-asyncio>=0.21.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
            "isort>=5.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "geotext-extract=geotext_extraction.cli:main",
            "geotext-experiment=geotext_extraction.experiment.runner:main",
        ],
    },
    zip_safe=False,
)

from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="docindex",
    version="0.1.0",
    author="docindex maintainers",
    author_email="maintainers@docindex.example.com",
    description="Local document ingestion, classification and hybrid search service",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/docindex",
    packages=find_packages(include=["docindex", "docindex.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.103.0",
        "uvicorn>=0.23.0",
        "pydantic>=2.3.0",
        "pydantic-settings>=2.0.0",
        "sqlalchemy[asyncio]>=2.0.0",
        "aiosqlite>=0.19.0",
        "alembic>=1.11.0",
        "celery>=5.3.0",
        "redis>=4.6.0",
        "openai>=1.0.0",
        "httpx>=0.24.1",
        "pdfminer.six>=20221105",
        "pypdf>=4.0.0",
        "python-docx>=1.1.0",
        "openpyxl>=3.1.0",
        "xlrd>=2.0.1",
        "python-pptx>=0.6.21",
        "numpy>=1.26.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.3.1",
            "pytest-asyncio",
            "xlwt>=1.3.0",
            "pytest-cov>=4.1.0",
            "black>=23.7.0",
            "ruff>=0.0.280",
            "mypy>=1.5.1",
            "pre-commit>=3.3.3",
            "types-redis>=4.6.0.3",
        ],
    },
)

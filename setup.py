"""Packaging for snowflake-governance."""

from pathlib import Path

from setuptools import find_packages, setup

HERE = Path(__file__).parent
README = (
    (HERE / "README.md").read_text(encoding="utf8")
    if (HERE / "README.md").exists()
    else ""
)


setup(
    name="snowflake-governance",
    version="0.1.0",
    description="Role-conditioned masking and row access policies for Snowflake",
    long_description=README,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "snowflake-snowpark-python>=1.11",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
)

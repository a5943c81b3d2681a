from pathlib import Path
from setuptools import setup, find_packages

README = (Path(__file__).parent / "README.md").read_text(encoding="utf-8")

setup(
    name="newrelic-agent-bootstrap",
    version="2.4.0",
    description="Configuration resolution and bootstrap core for the New Relic agent",
    long_description=README,
    long_description_content_type="text/markdown",
    author="New Relic",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"newrelic_agent": ["newrelic.yml"]},
    python_requires=">=3.10",
    install_requires=[
        "loguru>=0.7",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": ["pytest>=7.0", "pytest-mock>=3.10"],
    },
)

"""
Semantic Merge Engine - Setup Configuration
"""
from setuptools import setup, find_packages

# Core requirements
core_requirements = [
    "pydantic>=2.0.0",
    "pyyaml>=6.0.0",
    "python-dotenv>=1.0.0",
]

# Development requirements
dev_requirements = [
    "pytest>=7.0.0",
    "pytest-cov>=4.0.0",
    "black>=23.0.0",
    "isort>=5.12.0",
    "flake8>=6.0.0",
    "mypy>=1.0.0",
    "types-PyYAML>=6.0.0",
]

# Load testing
load_requirements = [
    "locust>=2.15.0",
]

setup(
    name="semantic-merge-engine",
    version="1.0.0",
    author="Semantic Merge Contributors",
    author_email="",
    description="Cross-source column merging and grouped queries for multi-platform analytics",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
        "Topic :: Scientific/Engineering :: Information Analysis",
    ],
    python_requires=">=3.9",
    install_requires=core_requirements,
    extras_require={
        "dev": dev_requirements,
        "load": load_requirements,
        "all": dev_requirements + load_requirements,
    },
    include_package_data=True,
    package_data={
        "semantic_merge": ["py.typed"],
    },
    keywords=[
        "analytics",
        "data-merge",
        "semantic",
        "dashboard",
        "aggregation",
        "marketing",
    ],
)

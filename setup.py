from setuptools import find_packages, setup

setup(
    name="agentgrid",
    packages=find_packages(include=["agentgrid", "agentgrid.*"]),
    version="0.1.0.dev0",
    description="Discrete-time agent-based simulation on single-occupancy grids, with Polars data collection",
    author="agentgrid developers",
    license="MIT License",
    python_requires=">=3.11",
    install_requires=[
        "numpy>=1.26",
        "polars>=1.0",
        "beartype>=0.18",
    ],
    extras_require={
        "test": ["pytest", "pytest-cov", "typer>=0.9"],
        "examples": ["typer>=0.9"],
    },
)

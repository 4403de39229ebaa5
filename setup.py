from setuptools import setup, find_packages

setup(
    name="rosterwatch",
    version="0.1.0",
    packages=find_packages(exclude=["tests*"]),
    install_requires=[
        "pyyaml",
        "pydantic",
        "requests",
        "pdfplumber",
        "thefuzz",
        "filelock",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "rosterwatch=rosterwatch.cli:main",
        ],
    },
)

from setuptools import setup


setup(
    name="comp-key-reformat",
    version="0.1.0",
    description="Reorder messy comp-key spreadsheet exports into the canonical column layout",
    packages=["comp_key_reformat"],
    python_requires=">=3.9",
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
        "requests",
        "python-dotenv",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "comp-key-reformat=comp_key_reformat.cli:main",
        ]
    },
)

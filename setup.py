from setuptools import setup


setup(
    name="sheet-viewer",
    version="0.1.0",
    description="Inference and navigation engine for Google Sheets CSV itinerary, shopping and catalog exports",
    packages=["sheet_viewer"],
    package_data={
        "sheet_viewer": [
            "data/*.csv",
        ]
    },
    include_package_data=True,
    install_requires=[
        "pandas",
        "chardet",
        "streamlit",
        "requests",
        "pydantic",
        "pydantic-settings",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "sheet-viewer=sheet_viewer.cli:main",
        ]
    },
)

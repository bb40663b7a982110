from setuptools import setup, find_packages

setup(
    name="domscript",
    version="0.1.0",
    packages=find_packages(exclude=["tests*"]),
    package_data={"domscript": ["*.lark"]},
    install_requires=[
        "lark",
        "pydantic>=2.0",
        "loguru>=0.7",
        "opentelemetry-api",
    ],
    extras_require={
        "test": [
            "pytest",
            "opentelemetry-sdk",
        ],
    },
    entry_points={
        "console_scripts": [
            "domscript=domscript.cli:main",
        ],
    },
    python_requires=">=3.10",
)

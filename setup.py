from setuptools import setup, find_packages


setup(
    name="savn",
    version="0.1",
    packages=find_packages(),
    description="A minimal flat file archive: regular files, executables and symlinks in one blob.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "savn=savn.cli:main",
        ]
    },
)

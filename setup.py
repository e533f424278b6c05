from setuptools import setup

from baesenx.version import __version__

setup(
    name="baesenx",
    version=__version__,
    description=("Decompiler and save patcher for BSXScript 3.x visual novel scripts"),
    license="GPL-3.0",
    python_requires=">=3.10",
    install_requires=[
        "mrcrowbar >= 1.0.0rc1",
    ],
    extras_require={
        "test": ["pytest"],
    },
    packages=["baesenx"],
    entry_points={
        "console_scripts": [
            "baesenx = baesenx.cli:main",
        ],
    },
)

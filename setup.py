#!/usr/bin/env python3

from setuptools import setup

setup(
    author="Elias Zamaria",
    description="This package solves the block cipher Cryptopals crypto challenges.",
    entry_points={"console_scripts": ["cryptopals-blocks = challenges:main"]},
    extras_require={"test": ["pytest"]},
    install_requires="pycryptodomex >= 3.4.2",
    license="MIT",
    name="cryptopals-block-cipher-attacks",
    py_modules=["attacks", "block_tools", "challenges", "english", "oracles", "padding",
                "util"],
    python_requires=">=3.5",
    version="0.1.0",
    url="https://github.com/mikez302/cryptopals_solutions",
)

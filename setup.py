#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import sys
from pathlib import Path

from setuptools import setup, find_packages

root = Path(__file__).parent
readme = root / "README.md"

# the build hook bundles dictionaries through the package itself
sys.path.insert(0, str(root / "python"))
from opencc_native.build import BuildWithDictionaries  # noqa: E402

setup(
    name="opencc-native",
    version="1.2.0",
    package_dir={"": "python"},
    packages=find_packages("python"),
    package_data={
        "opencc_native.dictionaries": ["*.json", "*.ocd2"],
    },
    include_package_data=True,
    cmdclass={"build_py": BuildWithDictionaries},
    install_requires=[
        "loguru>=0.6.0",
        "pydantic>=2.0",
    ],
    extras_require={
        'test': ['pytest>=7.0.0', 'pytest-mock>=3.10', 'setuptools>=64'],
        'dev': ['pytest>=7.0.0', 'pytest-mock>=3.10', 'setuptools>=64'],
    },
    author="Max Qian",
    author_email="astro_air@126.com",
    description="ctypes bindings for the OpenCC Chinese conversion library with bundled dictionaries",
    long_description=readme.read_text(encoding="utf-8") if readme.exists() else "",
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Text Processing :: Linguistic",
    ],
    python_requires='>=3.11',
)

"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/zackees/winbuild"
KEYWORDS = "msvc windows compiler linker toolchain build cl.exe vcvarsall"
HERE = os.path.dirname(os.path.abspath(__file__))


if __name__ == "__main__":
    setup(
        name="winbuild",
        version="0.1.0",
        description="MSVC toolchain orchestration for native build schedulers",
        maintainer="Zachary Vorhies",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where=os.path.join(HERE, "src")),
        install_requires=[
            "psutil>=5.9",
        ],
        extras_require={
            "test": [
                "pytest>=7.0",
            ],
        },
        entry_points={
            "console_scripts": [
                "winbuild=winbuild.cli:main",
            ],
        },
        include_package_data=True)

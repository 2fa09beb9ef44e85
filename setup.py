"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/zackees/lvpreview"
KEYWORDS = "lvgl emscripten webassembly preview compiler build-cache embedded-ui"
HERE = os.path.dirname(os.path.abspath(__file__))

INSTALL_REQUIRES = [
    "requests>=2.31",
    "tqdm>=4.66",
    "psutil>=5.9",
]

EXTRAS_REQUIRE = {
    "test": ["pytest>=7.4"],
}


if __name__ == "__main__":
    setup(
        name="lvpreview",
        version="0.1.0",
        description="Incremental LVGL to WebAssembly builds for live previews",
        maintainer="Zachary Vorhies",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.10",
        package_dir={"": "src"},
        packages=find_packages("src"),
        install_requires=INSTALL_REQUIRES,
        extras_require=EXTRAS_REQUIRE,
        entry_points={"console_scripts": ["lvpreview=lvpreview.cli:main"]},
        include_package_data=True)

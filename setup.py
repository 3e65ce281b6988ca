from os import path

import setuptools

here = path.abspath(path.dirname(__file__))

with open(path.join(here, "README.rst"), encoding="utf-8") as readme_file:
    readme = readme_file.read()

with open(path.join(here, "requirements.txt")) as requirements_file:
    # Parse requirements.txt, ignoring any commented-out lines.
    requirements = [
        line
        for line in requirements_file.read().splitlines()
        if line and not line.startswith("#")
    ]

setuptools.setup(
    name="bfrecipes",
    version="0.3.0",
    description="Generate beamformer recipe (BFR5) files for the BLUSE beamformer.",
    long_description=readme,
    long_description_content_type="text/x-rst",
    python_requires=">=3.10",
    packages=setuptools.find_packages(exclude=["docs", "tests"]),
    include_package_data=True,
    package_data={
        "bfrecipes": [
            # When adding files here, remember to update MANIFEST.in as well,
            # or else they will not be included in the distribution on PyPI!
            "configs/*.yml",
            "telinfo/telescopes/*.yml",
        ]
    },
    install_requires=requirements,
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "raw2bfr = bfrecipes.cli:raw2bfr",
            "targets2bfr = bfrecipes.cli:targets2bfr",
            "bfr2obsinfo = bfrecipes.cli:bfr2obsinfo",
        ]
    },
    license="BSD (3-clause)",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Natural Language :: English",
        "Programming Language :: Python :: 3",
    ],
)

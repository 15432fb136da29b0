# -*- coding: utf-8 -*-
import os

from setuptools import find_packages, setup

VERSION = "0.1"

setup(
    name="django_component_slots",
    packages=find_packages(exclude=["tests", "tests.*"]),
    version=VERSION,
    description="Declarative single and collection slots for reusable Django template components.",
    long_description=open(os.path.join(os.path.dirname(__file__), "README.md"), encoding="utf8").read(),
    long_description_content_type="text/markdown",
    install_requires=["Django>=3.2", "inflection>=0.5"],
    extras_require={"test": ["pytest"]},
    license="MIT",
    keywords=["django", "components", "slots", "html"],
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "Framework :: Django",
    ],
)

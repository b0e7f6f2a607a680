import setuptools
from setuptools import find_packages


vars2find = ["__author__", "__version__"]
vars2readme = {}
with open("./eventstore_backup/__init__.py") as f:
    for line in f.readlines():
        for v in vars2find:
            if line.startswith(v):
                line = line.replace(" ", "").replace('"', "").replace("'", "").strip()
                vars2readme[v] = line.split("=")[1]

core_deps = [
    "pydantic>=2.0",
    "pydantic-settings>=2.0",
    "httpx",
    "tenacity",
    "psutil",
    "rich",
]

setuptools.setup(
    name="eventstore-backup",
    version=vars2readme["__version__"],
    author=vars2readme["__author__"],
    description="Backup, restore and maintenance tooling for an EventStore data directory",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.9",
    install_requires=core_deps,
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "eventstore-backup=eventstore_backup.cli.main:main",
        ],
    },
)

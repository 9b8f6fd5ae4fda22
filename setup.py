"""
Setup script for the interfaceheight package.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="interfaceheight",
    version="0.1.0",
    author="PhD Student",
    description="Interface height and position of two-phase flows on "
                "tetrahedral meshes",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "demos"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Physics",
        "Topic :: Scientific/Engineering :: Visualization",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20.0",
        "matplotlib>=3.3.0",
        "pyvista>=0.43.0",
        "vtk>=9.1",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "black",
            "flake8",
            "mypy",
        ],
        "mpi": [
            "mpi4py>=3.1",
        ],
        "all": [
            "pytest>=6.0",
            "black",
            "flake8",
            "mypy",
            "mpi4py>=3.1",
        ],
    },
    keywords="cfd, two-phase, free-surface, interface-height, post-processing",
)

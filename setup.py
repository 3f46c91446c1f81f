from setuptools import find_packages, setup


setup(
    name="meshcontrol",
    version="0.1.0",
    description="Adaptive mesh refinement control: threshold marking, mesh controls and sequences",
    author="meshcontrol Authors",
    packages=find_packages(include=["meshcontrol", "meshcontrol.*"]),
    install_requires=[
        "numpy>=1.22.0",
        "matplotlib>=3.5.0",  # Used for adaptation history plots
    ],
    extras_require={
        "mpi": ["mpi4py>=3.1.0"],  # Global reductions on distributed meshes
        # mpich provides the MPI runtime the mpi4py wheels load
        "test": ["pytest>=7.0.0", "mpi4py>=3.1.0", "mpich; sys_platform != 'win32'"],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Mathematics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    keywords="adaptive mesh refinement, finite elements, error estimation, amr",
)

from setuptools import setup, find_packages

setup(
    name="nerc-thermal-event-library",
    version="0.1.0",
    packages=find_packages(exclude=("tests", "tests.*", "examples")),
    install_requires=[
        "numpy>=1.21.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",
    ],
    extras_require={
        "netcdf": ["xarray>=0.19", "netCDF4>=1.5"],
        "test": ["pytest>=6.0"],
    },
    author="NERC Thermal Events Team",
    description="Heat wave and cold snap event libraries for NERC subregions",
    python_requires=">=3.8",
)

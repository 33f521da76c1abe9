from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

install_requires = [
    # Image I/O and buffers
    "numpy>=1.20.0",
    "tifffile>=2023.7.10",
    # Configuration files
    "PyYAML>=6.0",
]

# Development tools only (optional)
extras_require = {
    "dev": [
        "pytest>=7.0.0",
        "pytest-cov>=3.0.0",
        "nibabel>=5.0.0",
        "black>=22.0.0",
        "flake8>=4.0.0",
        "mypy>=0.950",
    ],
}

setup(
    name="tiffnii",
    version="0.1.0",
    description="Convert TIFF, Zeiss LSM, ImageJ and OME-TIFF microscopy stacks to NIfTI-1",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["tiffnii", "tiffnii.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Topic :: Scientific/Engineering :: Image Processing",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "tiffnii=tiffnii.cli:main",
        ],
    },
)

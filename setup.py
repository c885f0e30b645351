import os
from setuptools import setup, find_packages

setup(
    name="vecbench",
    version="0.1.0",
    description="Benchmark for runtime-compiled CUDA vector divide/multiply kernels",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["vecbench", "vecbench.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: System :: Benchmark",
        "Environment :: GPU :: NVIDIA CUDA",
    ],
    python_requires=">=3.8",
    install_requires=[
        "torch>=1.10.0",
        "numpy",
        "pycuda",
    ],
    extras_require={
        "dev": [
            "black",
            "pytest",
            "pytest-benchmark",
        ],
    },
    entry_points={
        "console_scripts": [
            "vecbench=vecbench.__main__:main",
        ],
    },
)

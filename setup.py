from setuptools import find_packages, setup

setup(
    name="looptile",
    version="0.1.0-alpha",
    description="Looptile - Loop tiling and buffer access analysis for tensor kernels",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=["numpy", "networkx", "tabulate"],
    extras_require={"test": ["pytest", "hypothesis"]},
)

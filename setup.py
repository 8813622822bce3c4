from setuptools import setup, find_packages

setup(
    name="dispatch-simulator",
    version="0.1.0",
    description="Load-balancing dispatch simulator for a small fleet of bounded-queue servers",
    author="adamfilli",
    packages=find_packages(include=["dispatchsimulator", "dispatchsimulator.*"]),
    install_requires=[
        "numpy>=1.25",
        "matplotlib",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)

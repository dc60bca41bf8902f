from setuptools import setup

setup(
    name="node-metrics-exporter",
    version="1.0.0",
    author="mcrespoae",
    author_email="info@mariocrespo.es",
    packages=["nodemetrics"],
    description="A host agent that samples system and network metrics and reports them over HTTP",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    install_requires=["psutil>=5.9.8", "requests>=2.31", "structlog>=23.1"],
    extras_require={"test": ["pytest>=7.4"]},
    entry_points={"console_scripts": ["node-metrics-exporter=nodemetrics.core:main"]},
    python_requires=">=3.10",
    keywords=["metrics", "monitoring", "agent"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Intended Audience :: System Administrators",
    ],
)

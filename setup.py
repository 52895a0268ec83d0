"""
Setup script for http_engine.

This script handles the installation of the package.
"""

import sys
from setuptools import setup, find_packages


def get_version():
    """Read the version without importing the package."""
    namespace = {}
    with open("src/http_engine/version.py", "r", encoding="utf-8") as f:
        exec(f.read(), namespace)
    return namespace["__version__"]


def get_long_description():
    """Get long description from README."""
    try:
        with open("README.md", "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        return "HTTP/1.1 client protocol engine with redirects, Basic auth and proxies"


def main():
    """Main setup function."""
    # Check Python version
    if sys.version_info < (3, 8):
        raise RuntimeError("Python 3.8 or higher is required")

    setup(
        name="http_engine",
        version=get_version(),
        description="HTTP/1.1 client protocol engine with redirects, Basic auth and proxies",
        long_description=get_long_description(),
        long_description_content_type="text/markdown",
        author="Developer",
        author_email="dev@example.com",
        url="https://github.com/yourusername/http_engine",
        packages=find_packages(where="src"),
        package_dir={"": "src"},
        python_requires=">=3.8",
        install_requires=[],
        extras_require={
            "test": [
                "pytest>=7.0.0",
                "pytest-asyncio>=0.21.0",
                "h11>=0.14.0",
            ],
            "dev": [
                "pytest>=7.0.0",
                "pytest-asyncio>=0.21.0",
                "h11>=0.14.0",
                "black>=22.0.0",
                "mypy>=1.0.0",
                "pre-commit>=2.20.0",
                "pytest-cov>=4.0.0",
            ],
        },
        classifiers=[
            "Development Status :: 3 - Alpha",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: MIT License",
            "Operating System :: OS Independent",
            "Programming Language :: Python :: 3",
            "Programming Language :: Python :: 3.8",
            "Programming Language :: Python :: 3.9",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.11",
            "Programming Language :: Python :: 3.12",
            "Topic :: Internet :: WWW/HTTP",
            "Topic :: Software Development :: Libraries :: Python Modules",
        ],
        keywords=["http", "async", "http11", "client", "chunked"],
        zip_safe=False,
        include_package_data=True,
    )


if __name__ == "__main__":
    main()

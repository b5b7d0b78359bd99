from setuptools import setup, find_packages

setup(
    name="gitlab-repo-analyzer",
    version="0.1.0",
    packages=find_packages(include=["repo_analyzer", "repo_analyzer.*"]),
    install_requires=[
        "fastapi>=0.100.0",
        "uvicorn>=0.15.0",
        "python-dotenv>=0.19.0",
        "sqlalchemy[asyncio]>=2.0.0",
        "asyncpg>=0.27.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "httpx>=0.24.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "aiosqlite>=0.19.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "repo-analyzer=repo_analyzer.cli:main",
        ],
    },
    python_requires=">=3.9",
    description="GitLab commit synchronization and commit statistics service",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)

"""
Setup script for adaptive-tutor-engine.

The adaptive tutor engine is the AI-backed core of an interactive tutoring
app. It serves four roles:

1. Curriculum - AI-generated lesson plans and lesson content, cached
2. Robustness - repair of truncated model JSON, retry and rate limiting
3. Mastery - per-lesson progress with subject-adaptive advancement criteria
4. Fallbacks - typed retry placeholders instead of errors when generation fails
"""

from setuptools import find_namespace_packages, setup

setup(
    name="adaptive-tutor-engine",
    version="1.0.0",
    description="Adaptive tutoring engine: AI lesson plans, content and mastery tracking",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["src", "src.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP (model-call error classification)
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning tutoring education llm adaptive",
)

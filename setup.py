# setup.py
from setuptools import setup, find_packages

setup(
    name="devagent",
    version="0.1.0",
    description="A CLI agent that turns a task description into file edits using a Gemini model.",
    author="DevAgent Team",
    packages=find_packages(include=['devagent', 'devagent.*']),
    # Jinja2 templates for prompts and the default config live inside the package
    include_package_data=True,
    package_data={
        'devagent': ['templates/*.j2'],
    },
    install_requires=[
        "click>=8.0",
        "pyyaml",
        "jinja2",
        "rich",
        "requests>=2.28",
        "google-generativeai>=0.7",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'devagent = devagent.cli:cli',
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)

"""
CourseGraph - compile course content directories into a content index

Installation:
    pip install -e .

This installs the 'coursegraph' command globally in your environment.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
long_description = ''
if os.path.exists('README.md'):
    with open('README.md', 'r', encoding='utf-8') as f:
        long_description = f.read()

setup(
    name='coursegraph',
    version='1.0.0',
    description='Compile course content directories into a queryable content index',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='Dale Chapman',
    author_email='',
    license='MIT',

    # Find all packages (coursegraph/ and any subpackages)
    packages=find_packages(exclude=['tests', 'tests.*', 'docs', 'courses']),

    include_package_data=True,

    # Python version requirement
    python_requires='>=3.9',

    # Dependencies
    install_requires=[
        'click>=8.0',
        'python-frontmatter>=1.0',
        'toml>=0.10',
        'PyYAML>=6.0',
        'watchdog>=3.0',
        'markdown-it-py>=3.0',
        'pydantic>=2.0',
    ],

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=7.4',
            'pytest-cov>=4.1',
            'pytest-mock>=3.11',
        ],
    },

    # CLI entry point - this creates the 'coursegraph' command
    entry_points={
        'console_scripts': [
            'coursegraph=coursegraph.cli:cli',
        ],
    },

    # Classifiers for PyPI
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Education',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Education',
    ],

    # Keywords for discoverability
    keywords='course content compiler markdown education',
)

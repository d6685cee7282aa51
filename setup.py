from setuptools import setup, find_packages
import re

# Read version from stubtrack/__init__.py
with open('stubtrack/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='paystub-tracker',
    version=version,
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'processors': ['parsers/*.yaml'],
    },
    install_requires=[
        'PyPDF2>=3.0.0',
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'paystub-tracker=stubtrack.cli.__main__:main',
        ],
    },
    author='Personal',
    description='Structured pay stub records, contributions and reconciliation from stub text.',
    python_requires='>=3.10',
)

from setuptools import setup, find_packages
import re

# Read version from wagecalc/__init__.py
with open('wagecalc/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='wagecalc',
    version=version,
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'wagecalc': ['tax_rules/*.yaml'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'wage-calc=wagecalc.cli.__main__:main',
        ],
    },
    author='Personal',
    description='Attendance-to-payroll and monthly withholding tax calculations.',
    python_requires='>=3.11',
)

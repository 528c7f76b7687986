from setuptools import setup, find_packages
from codecs import open
from os import path

here = path.abspath(path.dirname(__file__))
with open(path.join(here, 'ripplefind', 'VERSION')) as f:
    VERSION = f.read().strip('\n')  # editors love to add newline

with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='ripplefind',
    version=VERSION,
    description='Detection of hippocampal ripples in LFP recordings',
    long_description=long_description,
    license='GPLv3',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Bio-Informatics',
        'License :: OSI Approved :: GNU General Public License v3 (GPLv3)',
        'Programming Language :: Python :: 3 :: Only',
    ],
    keywords='neuroscience analysis sleep LFP hippocampus ripples',
    packages=find_packages(exclude=('tests', )),
    install_requires=[
        'numpy',
        'scipy',
        ],
    extras_require={
        'test': [  # to run tests
            'pytest',
            'pytest-cov',
            ],
    },
    package_data={
        'ripplefind': [
            'VERSION',
            ],
    },

    entry_points={
        'console_scripts': [
            'ripplefind=ripplefind.bin.detect:main',
        ],
    },
)

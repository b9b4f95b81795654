from glob import glob
from setuptools import setup


setup(
    name='rpncalc',
    version='0.1.0',
    description='RPN calculator with an arbitrary-precision numeric tower',
    install_requires=[
        'regex',
        'prompt_toolkit',
        'mpmath',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-cov',
        ],
    },
    packages=['rpncalc'],
    package_dir={'': 'src'},
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        "Programming Language :: Python :: 3",
    ],
    scripts=glob('bin/*'),
    license='ISC',
)

from facefit.cli import main

main()

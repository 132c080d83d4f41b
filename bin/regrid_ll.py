# FILENAME:  regrid_ll.py
# CREATED:   2024-07-19
#
# PURPOSE:   Interpolate a layered geophysical field onto a different
#            horizontal lon/lat grid
#
# Usage: python regrid_ll.py -i temp.nc -o temp_1deg.nc -v temp
#            -gi mesh_mask.nc nav_lon nav_lat mbathy -go grid_1deg.nc lon lat -t
#
import sys

# Import from regrid_ll package
from regrid_ll.cli import main

if __name__ == '__main__':
    sys.exit(main())

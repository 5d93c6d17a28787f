# Serial tag reader: two-stage detection + glyph sequence reconstruction
